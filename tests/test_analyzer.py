"""Tests for meeting-notes analysis."""

import json

import pytest
from openai import AsyncOpenAI, OpenAIError

import analyzer
from analyzer import analyze_meeting_notes, build_prompt, get_llm_client, open_llm_client, close_llm_client
from main import app
from settings import settings
from conftest import CANNED_ANALYSIS, FakeLLMClient
from errors import AnalysisError

NOTES = "Team sync on May 15. Alice to follow up with Bob. Invite Carol."


def test_prompt_contains_notes() -> None:
    prompt = build_prompt(NOTES)
    assert f"Meeting Notes: {NOTES}" in prompt
    assert '"suggestedDates"' in prompt


async def test_analyze_returns_model_output_unchanged() -> None:
    client = FakeLLMClient(content=json.dumps(CANNED_ANALYSIS))

    analysis = await analyze_meeting_notes(client, NOTES, model="test-model")

    assert analysis.model_dump(by_alias=True) == CANNED_ANALYSIS
    assert len(client.calls) == 1
    call = client.calls[0]
    assert call["model"] == "test-model"
    assert call["response_format"] == {"type": "json_object"}
    assert NOTES in call["messages"][0]["content"]


async def test_all_empty_is_not_an_error() -> None:
    client = FakeLLMClient(
        content=json.dumps({"suggestedDates": [], "suggestedInvitees": [], "suggestedTasks": []})
    )
    analysis = await analyze_meeting_notes(client, NOTES, model="test-model")
    assert analysis.is_empty


@pytest.mark.parametrize(
    "content",
    [
        None,
        "not json at all",
        json.dumps({"suggestedDates": ["May 15"]}),
        json.dumps({"suggestedDates": "May 15", "suggestedInvitees": [], "suggestedTasks": []}),
    ],
)
async def test_bad_model_output_raises(content) -> None:
    client = FakeLLMClient(content=content)
    with pytest.raises(AnalysisError):
        await analyze_meeting_notes(client, NOTES, model="test-model")


async def test_provider_failure_raises() -> None:
    client = FakeLLMClient(error=OpenAIError("service unavailable"))
    with pytest.raises(AnalysisError):
        await analyze_meeting_notes(client, NOTES, model="test-model")


async def test_endpoint_success(client, llm) -> None:
    response = await client.post("/meeting-notes/analyze", json={"meetingNotes": NOTES})

    assert response.status_code == 200
    body = response.json()
    assert body["message"] == "Analysis successful."
    assert body["result"] == CANNED_ANALYSIS
    assert len(llm.calls) == 1


async def test_endpoint_short_notes_skip_model(client, llm) -> None:
    response = await client.post("/meeting-notes/analyze", json={"meetingNotes": "ab"})

    assert response.status_code == 422
    body = response.json()
    assert body["error"] == "Meeting notes must be at least 10 characters."
    assert body["errors"] == {"meetingNotes": ["Meeting notes must be at least 10 characters."]}
    assert llm.calls == []


async def test_endpoint_whitespace_padding_does_not_count(client, llm) -> None:
    response = await client.post("/meeting-notes/analyze", json={"meetingNotes": "   short    "})
    assert response.status_code == 422
    assert llm.calls == []


async def test_endpoint_provider_failure(client, llm) -> None:
    llm.error = OpenAIError("service unavailable")

    response = await client.post("/meeting-notes/analyze", json={"meetingNotes": NOTES})

    assert response.status_code == 502
    assert response.json() == {
        "message": "An unexpected error occurred.",
        "error": "Failed to analyze notes. Please try again later.",
    }


async def test_open_without_key_leaves_no_client(monkeypatch) -> None:
    monkeypatch.setattr(analyzer, "_client", None)
    monkeypatch.setattr(settings, "OPENAI_API_KEY", None)
    monkeypatch.delenv("OPENAI_API_KEY", raising=False)

    open_llm_client()

    assert get_llm_client() is None


async def test_open_and_close_client(monkeypatch) -> None:
    monkeypatch.setattr(analyzer, "_client", None)
    monkeypatch.setattr(settings, "OPENAI_API_KEY", "sk-test")

    open_llm_client()
    assert isinstance(get_llm_client(), AsyncOpenAI)

    await close_llm_client()
    assert get_llm_client() is None


async def test_analyze_without_client_raises() -> None:
    with pytest.raises(AnalysisError):
        await analyze_meeting_notes(None, NOTES, model="test-model")


async def test_endpoint_without_api_key(client, monkeypatch) -> None:
    """Test requests still get a validation error or the generic failure when no key is set."""
    monkeypatch.setattr(settings, "OPENAI_API_KEY", None)
    monkeypatch.delenv("OPENAI_API_KEY", raising=False)
    monkeypatch.setattr(analyzer, "_client", None)
    app.dependency_overrides.pop(get_llm_client)
    open_llm_client()

    response = await client.post("/meeting-notes/analyze", json={"meetingNotes": "ab"})
    assert response.status_code == 422
    assert response.json()["error"] == "Meeting notes must be at least 10 characters."

    response = await client.post("/meeting-notes/analyze", json={"meetingNotes": NOTES})
    assert response.status_code == 502
    assert response.json() == {
        "message": "An unexpected error occurred.",
        "error": "Failed to analyze notes. Please try again later.",
    }
