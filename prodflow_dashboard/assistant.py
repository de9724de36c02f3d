"""
Production assistant: builds a text context from the current snapshot and
asks a Mistral chat-completion model about it.
"""

import logging
from typing import Sequence

import requests

from .config import (
    ASSISTANT_HISTORY_LIMIT,
    ASSISTANT_LANGUAGE,
    ASSISTANT_MAX_ISSUES,
    ASSISTANT_MAX_STATIONS,
    ASSISTANT_MAX_TOKENS,
    ASSISTANT_TEMPERATURE,
    ASSISTANT_TIMEOUT_S,
    MISTRAL_API_URL,
    MISTRAL_MODEL,
)
from .models import Snapshot

logger = logging.getLogger(__name__)

SUGGESTED_QUESTIONS = [
    "What are the main bottlenecks?",
    "Summarise the most critical KPIs",
    "Which actions would improve the lead time?",
    "Analyse the most urgent issues",
]


class AssistantError(Exception):
    """Raised when the assistant cannot produce a reply."""


def build_context(snapshot: Snapshot | None) -> str:
    """Render the snapshot as a plain-text briefing for the model."""
    lines = ["Production context:", ""]
    if snapshot is None:
        lines.append("No production file has been imported yet.")
        return "\n".join(lines) + "\n"

    kpis = snapshot.kpis
    lines += [
        "Global KPIs:",
        f"- Planned lead time: {kpis.leadtime_planned_global_min} min",
        f"- Actual lead time: {kpis.leadtime_actual_global_min} min",
        f"- Lead time gap: {kpis.delta_leadtime_global_min} min",
        f"- WIP index baseline: {kpis.wip_index_baseline}",
        f"- WIP index scenario: {kpis.wip_index_scenario}",
        f"- WIP delta: {kpis.delta_wip_index}",
        "",
    ]

    if kpis.top_macro_bottlenecks:
        lines.append("Top bottlenecks:")
        for i, b in enumerate(kpis.top_macro_bottlenecks, start=1):
            lines.append(f"{i}. {b.macro_stage}: +{b.delta_leadtime_total_min} min")
        lines.append("")

    issues = snapshot.issues
    if issues:
        lines.append(f"Detected issues ({len(issues)} total):")
        for i, issue in enumerate(issues[:ASSISTANT_MAX_ISSUES], start=1):
            lines += [
                f"{i}. {issue.station_id} ({issue.macro_stage}):",
                f"   - {issue.summary}",
                f"   - Cycle delta: {issue.delta_min:.2f} min",
                f"   - Severity: {issue.severity}",
                f"   - Pieces: {issue.piece_count}",
            ]
        if len(issues) > ASSISTANT_MAX_ISSUES:
            lines.append(f"... and {len(issues) - ASSISTANT_MAX_ISSUES} more issues")
        lines.append("")

    lines.append(f"Macro stages ({len(snapshot.macros)}):")
    for macro in snapshot.macros:
        lines.append(
            f"- {macro.label}: LT={macro.kpi.leadtime_min:.1f} min, "
            f"delta={macro.kpi.delta_min:.1f} min"
        )
    lines.append("")

    stations = snapshot.stations
    lines.append(f"Stations ({len(stations)} total):")
    for s in stations[:ASSISTANT_MAX_STATIONS]:
        lines.append(
            f"- {s.label} ({s.macro_stage}): planned={s.kpi.planned_avg_min:.1f} min, "
            f"actual={s.kpi.actual_avg_min:.1f} min, delta={s.kpi.delta_min:.1f} min"
        )
    if len(stations) > ASSISTANT_MAX_STATIONS:
        lines.append(f"... and {len(stations) - ASSISTANT_MAX_STATIONS} more stations")

    return "\n".join(lines) + "\n"


def build_messages(
    question: str,
    history: Sequence[dict[str, str]],
    snapshot: Snapshot | None,
) -> list[dict[str, str]]:
    """System briefing + the last few history messages + the new question."""
    system = (
        "You are an expert assistant for industrial production analysis. "
        "Use the following data to answer the user's questions precisely "
        "and with actionable advice:\n\n"
        f"{build_context(snapshot)}\n"
        f"Answer in {ASSISTANT_LANGUAGE}, concisely and professionally. "
        "If you see problems or improvement opportunities, mention them."
    )
    recent = list(history)[-ASSISTANT_HISTORY_LIMIT:] if ASSISTANT_HISTORY_LIMIT else []
    return (
        [{"role": "system", "content": system}]
        + [{"role": m["role"], "content": m["content"]} for m in recent]
        + [{"role": "user", "content": question}]
    )


def ask_assistant(
    question: str,
    history: Sequence[dict[str, str]],
    snapshot: Snapshot | None,
    api_key: str,
    session: requests.Session | None = None,
) -> str:
    """Send the question to the chat-completion API and return the reply text.

    Parameters
    ----------
    question : The user's message.
    history : Previous messages ({"role", "content"}), oldest first.
    snapshot : Current import, summarised into the system prompt.
    api_key : Mistral API key.
    session : Optional requests session (connection reuse, tests).

    Raises
    ------
    AssistantError on a missing key, transport failure, non-2xx status, or
    a reply without message content.
    """
    if not api_key:
        raise AssistantError("No Mistral API key configured")
    if not question.strip():
        raise AssistantError("Empty question")

    payload = {
        "model": MISTRAL_MODEL,
        "messages": build_messages(question, history, snapshot),
        "temperature": ASSISTANT_TEMPERATURE,
        "max_tokens": ASSISTANT_MAX_TOKENS,
    }
    headers = {
        "Content-Type": "application/json",
        "Authorization": f"Bearer {api_key}",
    }

    http = session or requests
    try:
        response = http.post(
            MISTRAL_API_URL,
            json=payload,
            headers=headers,
            timeout=ASSISTANT_TIMEOUT_S,
        )
    except requests.RequestException as exc:
        logger.exception("Mistral request failed")
        raise AssistantError(f"Request failed: {exc}") from exc

    if not response.ok:
        try:
            detail = response.json().get("message")
        except (ValueError, AttributeError):
            detail = None
        logger.error("Mistral API error %s: %s", response.status_code, detail)
        raise AssistantError(detail or f"API error: {response.status_code}")

    try:
        return response.json()["choices"][0]["message"]["content"]
    except (ValueError, KeyError, IndexError, TypeError) as exc:
        logger.exception("Malformed Mistral reply")
        raise AssistantError("Malformed reply from the assistant API") from exc
