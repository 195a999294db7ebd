"""Claude-powered extraction of action items from meeting transcripts."""

from __future__ import annotations

import logging
from datetime import UTC, datetime
from typing import Any

from anthropic import Anthropic, APIConnectionError, APIStatusError
from anthropic.types import TextBlock

from src.config import settings
from src.errors import UpstreamServiceError
from src.extraction.models import ActionItemCandidate, normalize_candidate
from src.extraction.parsing import parse_json_reply

logger = logging.getLogger(__name__)

SYSTEM_PROMPT = """\
You are an expert at extracting action items from meeting transcripts. Analyze the \
transcript and extract ALL action items with the following details:

1. Action Item: the specific task or action to be done
2. Owner: the person responsible (name, plus email if one is mentioned)
3. Deadline: convert any date mentioned to an ISO-8601 date. Resolve relative dates \
such as "next Friday" or "Monday" against the meeting date: {meeting_date} ({weekday})
4. Priority: infer from context - "High" for urgent/ASAP/critical, "Medium" for \
normal, "Low" for "when possible"
5. Confidence: a score from 0.0 to 1.0 indicating how sure you are this is a real \
action item

Rules:
- Extract action items even if implicit ("I'll handle..." means the speaker is the owner)
- Use speaker names for ownership when mentioned ("John said he'll..." -> owner: John)
- Flag low confidence (< 0.7) for ambiguous items and say why in notes
- Output ONLY a valid JSON array, no other text"""

USER_PROMPT = """\
Analyze this meeting transcript and extract all action items:

{transcript}

Output ONLY a JSON array with this exact schema:
[
  {{
    "actionItem": "string - the task description",
    "owner": "string or null - person responsible",
    "ownerEmail": "string or null - email if detected",
    "deadline": "ISO date string or null",
    "priority": "High" | "Medium" | "Low",
    "confidence": number between 0 and 1,
    "notes": "string or null - relevant context"
  }}
]"""


def build_system_prompt(meeting_date: datetime) -> str:
    return SYSTEM_PROMPT.format(
        meeting_date=meeting_date.isoformat(),
        weekday=meeting_date.strftime("%A"),
    )


def parse_action_items(text: str) -> list[ActionItemCandidate]:
    """Parse a model reply into normalized candidates.

    Never raises: an unparseable reply, or anything other than a JSON array,
    yields an empty list.
    """
    try:
        data = parse_json_reply(text)
    except ValueError:
        logger.warning("Failed to parse extraction reply: %.200s", text)
        return []

    if not isinstance(data, list):
        logger.warning("Extraction reply is %s, expected a JSON array", type(data).__name__)
        return []

    return [normalize_candidate(raw) for raw in data]


def _reply_text(response: Any) -> str:
    return "".join(block.text for block in response.content if isinstance(block, TextBlock))


def extract_action_items(
    transcript: str,
    meeting_date: datetime | None = None,
) -> list[ActionItemCandidate]:
    """Extract action items from a transcript using Claude.

    Args:
        transcript: The raw meeting transcript text (non-empty).
        meeting_date: Anchor for resolving relative dates. Defaults to now.

    Returns:
        Normalized candidates; empty when the model reply cannot be parsed.

    Raises:
        UpstreamServiceError: The inference service rejected the call. The
            status code is 429 for rate limits, 402 for exhausted credits and
            500 otherwise.
    """
    if not settings.anthropic_api_key:
        raise UpstreamServiceError("ANTHROPIC_API_KEY is not configured")

    anchor = meeting_date or datetime.now(UTC)
    client = Anthropic(api_key=settings.anthropic_api_key)

    try:
        response = client.messages.create(
            model=settings.llm_model,
            max_tokens=4096,
            temperature=settings.extraction_temperature,
            system=build_system_prompt(anchor),
            messages=[{"role": "user", "content": USER_PROMPT.format(transcript=transcript)}],
        )
    except APIStatusError as exc:
        if exc.status_code == 429:
            raise UpstreamServiceError(
                "Rate limit exceeded. Please try again later.", status_code=429
            ) from exc
        if exc.status_code == 402:
            raise UpstreamServiceError(
                "AI credits exhausted. Please add funds to continue.", status_code=402
            ) from exc
        logger.error("Inference error %s: %s", exc.status_code, exc.message)
        raise UpstreamServiceError(f"AI gateway error: {exc.status_code}") from exc
    except APIConnectionError as exc:
        raise UpstreamServiceError(f"AI gateway unreachable: {exc}") from exc

    items = parse_action_items(_reply_text(response) or "[]")
    logger.info("Model returned %d action items", len(items))
    return items
