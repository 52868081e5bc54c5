"""
Decision proposer.

Sends rendered context to the generation service and turns its free-text reply
into a structured Decision. Parsing never fails: text without a usable JSON
object becomes a single fallback notification carrying the head of the reply.
"""

import json
from typing import Any

import backoff
from openai import APIConnectionError, APITimeoutError, AsyncOpenAI, OpenAIError, RateLimitError

from app.agents.prompts import SYSTEM_PROMPT
from app.config import get_config, get_settings
from app.core.errors import ProposerError
from app.core.logging import get_logger
from app.schemas.actions import Action
from app.schemas.llm import Decision, FallbackSpec, ProposalResult

logger = get_logger(__name__)

DECISION_KEYS = ("analysis", "actions", "summary")


def _balanced_object_at(text: str, start: int) -> str | None:
    """Return the brace-balanced substring opening at text[start], if any.

    Braces inside JSON string literals are ignored.
    """
    depth = 0
    in_string = False
    escaped = False
    for i in range(start, len(text)):
        ch = text[i]
        if in_string:
            if escaped:
                escaped = False
            elif ch == "\\":
                escaped = True
            elif ch == '"':
                in_string = False
            continue
        if ch == '"':
            in_string = True
        elif ch == "{":
            depth += 1
        elif ch == "}":
            depth -= 1
            if depth == 0:
                return text[start : i + 1]
    return None


def extract_json_object(text: str) -> dict[str, Any] | None:
    """
    Find the first decision-shaped JSON object embedded in free text.

    Candidates are tried from each '{' left to right; the first one that parses
    to an object with at least one of analysis/actions/summary wins. Code fences
    and surrounding prose are tolerated.
    """
    if not text:
        return None

    start = text.find("{")
    while start != -1:
        candidate = _balanced_object_at(text, start)
        if candidate is not None:
            try:
                data = json.loads(candidate)
            except json.JSONDecodeError:
                data = None
            if isinstance(data, dict) and any(key in data for key in DECISION_KEYS):
                return data
        start = text.find("{", start + 1)
    return None


def _coerce_actions(raw_actions: Any) -> list[Action]:
    if not isinstance(raw_actions, list):
        return []

    actions: list[Action] = []
    for item in raw_actions:
        if not isinstance(item, dict) or not isinstance(item.get("type"), str):
            logger.bind(item=str(item)[:100]).warning("decision_action_skipped")
            continue
        params = item.get("params")
        actions.append(
            Action(
                type=item["type"][:100],
                params=params if isinstance(params, dict) else {},
                reason=str(item.get("reason") or ""),
            )
        )
    return actions


def fallback_decision(raw_text: str, fallback: FallbackSpec, max_chars: int | None = None) -> Decision:
    """Single create_notification wrapping the first `max_chars` of the raw reply."""
    if max_chars is None:
        max_chars = get_config().agents.proposer.fallback_message_chars

    return Decision(
        analysis=fallback.analysis,
        actions=[
            Action(
                type="create_notification",
                params={
                    "title": fallback.title,
                    "message": raw_text[:max_chars],
                    "priority": fallback.priority,
                    "type": fallback.notification_type,
                },
                reason=fallback.reason,
            )
        ],
        summary=fallback.summary,
    )


def parse_decision(
    raw_text: str, fallback: FallbackSpec, max_chars: int | None = None
) -> tuple[Decision, bool]:
    """
    Parse a reply into a Decision.

    Returns:
        (decision, used_fallback)
    """
    data = extract_json_object(raw_text)
    if data is None:
        return fallback_decision(raw_text, fallback, max_chars), True

    raw_actions = data.get("actions")
    actions = _coerce_actions(raw_actions)
    # An actions field that is present but yields nothing usable still informs a human
    if raw_actions is not None and (not isinstance(raw_actions, list) or (raw_actions and not actions)):
        logger.bind(actions_type=type(raw_actions).__name__).warning("decision_actions_malformed")
        return fallback_decision(raw_text, fallback, max_chars), True

    decision = Decision(
        analysis=str(data.get("analysis") or ""),
        actions=actions,
        summary=str(data.get("summary") or ""),
    )
    return decision, False


def get_llm_client() -> AsyncOpenAI:
    """Build the generation client from settings."""
    settings = get_settings()
    if not settings.openai_api_key:
        logger.warning("openai_api_key_not_set")
        raise ProposerError("OPENAI_API_KEY is not configured")
    return AsyncOpenAI(api_key=settings.openai_api_key)


@backoff.on_exception(
    backoff.expo,
    (RateLimitError, APIConnectionError, APITimeoutError),
    max_tries=lambda: get_config().agents.proposer.max_tries,
    max_time=lambda: get_config().agents.proposer.max_time,
)
async def _complete(client: AsyncOpenAI, system_prompt: str, user_prompt: str, max_tokens: int):
    settings = get_settings()
    return await client.chat.completions.create(
        model=settings.llm_model,
        messages=[
            {"role": "system", "content": system_prompt},
            {"role": "user", "content": user_prompt},
        ],
        max_tokens=max_tokens,
        temperature=settings.llm_temperature,
    )


async def propose_decision(
    user_prompt: str,
    fallback: FallbackSpec,
    client: AsyncOpenAI | None = None,
    system_prompt: str = SYSTEM_PROMPT,
    max_tokens: int | None = None,
) -> ProposalResult:
    """
    Ask the generation service for a decision.

    Args:
        user_prompt: Rendered context plus job instructions
        fallback: Notification to emit if the reply has no usable JSON
        client: OpenAI async client, built from settings if omitted
        system_prompt: System instructions
        max_tokens: Completion budget, defaults to settings.llm_max_tokens

    Returns:
        ProposalResult with the decision and token usage

    Raises:
        ProposerError: If the service can't be reached or isn't configured
    """
    if client is None:
        client = get_llm_client()
    if max_tokens is None:
        max_tokens = get_settings().llm_max_tokens

    try:
        response = await _complete(client, system_prompt, user_prompt, max_tokens)
    except OpenAIError as e:
        logger.bind(error=str(e)).error("proposer_call_failed")
        raise ProposerError(f"Generation service call failed: {e}") from e

    raw_text = ""
    if response.choices:
        raw_text = response.choices[0].message.content or ""

    decision, used_fallback = parse_decision(raw_text, fallback)

    usage = response.usage
    result = ProposalResult(
        decision=decision,
        raw_text=raw_text,
        used_fallback=used_fallback,
        prompt_tokens=usage.prompt_tokens if usage else 0,
        completion_tokens=usage.completion_tokens if usage else 0,
        total_tokens=usage.total_tokens if usage else 0,
    )

    logger.bind(
        actions=len(decision.actions),
        used_fallback=used_fallback,
        tokens=result.total_tokens,
    ).info("decision_proposed")

    return result
