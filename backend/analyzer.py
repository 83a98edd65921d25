"""Suggest event dates, invitees and follow-up tasks from free-form meeting notes.

One request to the model per call, no retries. Whatever goes wrong on the
provider side (transport, API error, empty or malformed reply) surfaces as
``AnalysisError`` so callers can show a single "try again later" message.
"""

from openai import AsyncOpenAI, OpenAIError
import structlog

from errors import AnalysisError
from schemas import MeetingNotesAnalysis
from settings import settings

logger = structlog.get_logger()

PROMPT_TEMPLATE = """You are an AI assistant specializing in analyzing meeting notes.

Your task is to extract key information from the meeting notes and suggest:
- Possible dates for upcoming events related to the meeting.
- People who should be invited to these events.
- Tasks that need to be done following the meeting.

Meeting Notes: {meeting_notes}

Please provide the output in JSON format, as an object with exactly these keys,
each holding a list of strings (use an empty list when nothing applies):
{{"suggestedDates": [...], "suggestedInvitees": [...], "suggestedTasks": [...]}}
"""


def build_prompt(meeting_notes: str) -> str:
    return PROMPT_TEMPLATE.format(meeting_notes=meeting_notes)


# one client per process, opened on startup and closed on shutdown
_client: AsyncOpenAI | None = None


def open_llm_client() -> None:
    global _client
    try:
        _client = AsyncOpenAI(api_key=settings.OPENAI_API_KEY)
    except OpenAIError as e:
        # no key configured; analysis requests fail until one is
        logger.warning("Model client unavailable", error=str(e))
        _client = None


async def close_llm_client() -> None:
    global _client
    if _client is not None:
        await _client.close()
        _client = None


def get_llm_client() -> AsyncOpenAI | None:
    return _client


async def analyze_meeting_notes(
    client: AsyncOpenAI | None,
    meeting_notes: str,
    model: str | None = None,
) -> MeetingNotesAnalysis:
    if client is None:
        logger.error("Model client not configured")
        raise AnalysisError("model client not configured")

    model = model or settings.OPENAI_MODEL
    logger.info("Analyzing meeting notes", model=model, chars=len(meeting_notes))

    try:
        response = await client.chat.completions.create(
            model=model,
            messages=[{"role": "user", "content": build_prompt(meeting_notes)}],
            response_format={"type": "json_object"},
        )
    except OpenAIError as e:
        logger.error("Model call failed", error=str(e))
        raise AnalysisError("model call failed") from e

    content = response.choices[0].message.content if response.choices else None
    if not content:
        logger.error("Model returned no content")
        raise AnalysisError("empty model response")

    try:
        # ValidationError covers both bad JSON and a reply that misses the schema
        return MeetingNotesAnalysis.model_validate_json(content)
    except ValueError as e:
        logger.error("Model output did not match schema", error=str(e))
        raise AnalysisError("malformed model response") from e
