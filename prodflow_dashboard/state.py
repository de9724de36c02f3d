"""
Application state owned by the front end.

One AppState per user session holds the current snapshot, the assistant
conversation and the API key. Nothing here is module-global; callers pass
the state object to whatever needs it.
"""

from __future__ import annotations

import asyncio
import logging
import os
from dataclasses import dataclass, field
from typing import Any

from .config import ASSISTANT_GREETING, MISTRAL_API_KEY_ENV
from .loaders import IngestionError
from .models import Snapshot
from .pipeline import import_file

logger = logging.getLogger(__name__)


def _greeting() -> list[dict[str, str]]:
    return [{"role": "assistant", "content": ASSISTANT_GREETING}]


@dataclass
class AppState:
    api_key: str = ""
    snapshot: Snapshot | None = None
    messages: list[dict[str, str]] = field(default_factory=_greeting)
    imported_file_id: str | None = None
    import_error: str | None = None

    @classmethod
    def from_env(cls) -> AppState:
        """New state with the API key taken from the environment, if set."""
        return cls(api_key=os.environ.get(MISTRAL_API_KEY_ENV, "").strip())

    def replace_snapshot(self, snapshot: Snapshot) -> None:
        """Swap in the result of a new import; the previous one is dropped."""
        self.snapshot = snapshot
        logger.info(
            "Snapshot replaced: %s (%d stations)",
            snapshot.source_name, len(snapshot.stations),
        )

    def import_upload(self, file_id: str, source: Any, name: str) -> bool:
        """Import an uploaded file once per file id.

        The id is recorded before reading, so a file that fails is not
        retried on every rerun. On failure the current snapshot is kept and
        the message is left in `import_error`. Returns True when a new
        snapshot was swapped in.
        """
        if file_id == self.imported_file_id:
            return False
        self.imported_file_id = file_id
        self.import_error = None

        try:
            snapshot = asyncio.run(import_file(source, name))
        except IngestionError as exc:
            logger.warning("Keeping previous snapshot, import of %s failed: %s", name, exc)
            self.import_error = str(exc)
            return False

        self.replace_snapshot(snapshot)
        return True

    def set_api_key(self, api_key: str) -> bool:
        key = api_key.strip()
        if not key:
            return False
        self.api_key = key
        return True

    def clear_api_key(self) -> None:
        self.api_key = ""

    @property
    def has_api_key(self) -> bool:
        return bool(self.api_key)

    def add_message(self, role: str, content: str) -> None:
        self.messages.append({"role": role, "content": content})

    def reset_conversation(self) -> None:
        self.messages = _greeting()
