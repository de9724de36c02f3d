from unittest.mock import Mock

import pytest
import requests

from prodflow_dashboard.assistant import (
    AssistantError,
    ask_assistant,
    build_context,
    build_messages,
)
from prodflow_dashboard.config import MISTRAL_API_URL, MISTRAL_MODEL
from prodflow_dashboard.transforms import process_rows


def _reply(content="Bonjour"):
    response = Mock(ok=True, status_code=200)
    response.json.return_value = {"choices": [{"message": {"content": content}}]}
    return response


@pytest.fixture
def snapshot(two_station_rows):
    return process_rows(two_station_rows)


def test_context_without_snapshot():
    assert "No production file has been imported yet." in build_context(None)


def test_context_lists_kpis_issues_and_stations(snapshot):
    context = build_context(snapshot)

    assert "- Lead time gap: 6 min" in context
    assert "1. Stage1: +6 min" in context
    assert "Detected issues (1 total):" in context
    assert "A : Not specified - Not specified" in context
    assert "- B (Stage1): planned=5.0 min, actual=5.0 min, delta=0.0 min" in context
    assert "more" not in context


def test_context_truncates_long_lists(make_row):
    rows = [make_row(f"St{i}", "S", "0:10:00", "0:20:00") for i in range(12)]
    context = build_context(process_rows(rows))

    assert "Detected issues (12 total):" in context
    assert "... and 7 more issues" in context
    assert "Stations (12 total):" in context
    assert "... and 2 more stations" in context
    assert "St9 (S)" in context
    assert "St10 (S)" not in context


def test_messages_keep_recent_history(snapshot):
    history = [{"role": "user", "content": f"q{i}"} for i in range(8)]
    messages = build_messages("Pourquoi ?", history, snapshot)

    assert messages[0]["role"] == "system"
    assert [m["content"] for m in messages[1:-1]] == ["q3", "q4", "q5", "q6", "q7"]
    assert messages[-1] == {"role": "user", "content": "Pourquoi ?"}


def test_ask_assistant_posts_chat_completion(snapshot):
    session = Mock()
    session.post.return_value = _reply("Le poste A est en retard.")

    answer = ask_assistant("Quels goulets ?", [], snapshot, "secret", session=session)

    assert answer == "Le poste A est en retard."
    args, kwargs = session.post.call_args
    assert args == (MISTRAL_API_URL,)
    assert kwargs["headers"]["Authorization"] == "Bearer secret"
    assert kwargs["json"]["model"] == MISTRAL_MODEL
    assert kwargs["json"]["temperature"] == 0.7
    assert kwargs["json"]["max_tokens"] == 1000
    assert kwargs["timeout"] == 60


def test_ask_assistant_requires_key(snapshot):
    session = Mock()
    with pytest.raises(AssistantError):
        ask_assistant("Question", [], snapshot, "", session=session)
    session.post.assert_not_called()


def test_ask_assistant_rejects_blank_question(snapshot):
    with pytest.raises(AssistantError):
        ask_assistant("   ", [], snapshot, "secret", session=Mock())


def test_ask_assistant_http_error_uses_api_message(snapshot):
    response = Mock(ok=False, status_code=401)
    response.json.return_value = {"message": "Unauthorized"}
    session = Mock()
    session.post.return_value = response

    with pytest.raises(AssistantError, match="Unauthorized"):
        ask_assistant("Question", [], snapshot, "bad", session=session)


def test_ask_assistant_http_error_without_body(snapshot):
    response = Mock(ok=False, status_code=503)
    response.json.side_effect = ValueError("no json")
    session = Mock()
    session.post.return_value = response

    with pytest.raises(AssistantError, match="503"):
        ask_assistant("Question", [], snapshot, "secret", session=session)


def test_ask_assistant_transport_failure(snapshot):
    session = Mock()
    session.post.side_effect = requests.ConnectionError("down")

    with pytest.raises(AssistantError, match="down"):
        ask_assistant("Question", [], snapshot, "secret", session=session)


def test_ask_assistant_malformed_reply(snapshot):
    response = Mock(ok=True, status_code=200)
    response.json.return_value = {"choices": []}
    session = Mock()
    session.post.return_value = response

    with pytest.raises(AssistantError):
        ask_assistant("Question", [], snapshot, "secret", session=session)
