import asyncio
import json
import logging
from typing import Any, Awaitable, Callable, Protocol

from ..errors import EmptyResponseError, InvalidModelJSONError, MenuValidationError, RateLimitError
from ..schemas.menu import Menu, validate_menu

logger = logging.getLogger(__name__)

MAX_ATTEMPTS = 3
MAX_RETRY_DELAY_SECONDS = 30.0

PROMPT_TEMPLATE = """You are an expert data extraction assistant.
Extract a structured "Home Chef" style menu from the provided text. Return STRICT JSON that matches this shape:

{{
  "vendor": string (optional),
  "currency": string (optional, e.g. "INR", "USD", or a symbol like "Rs" / "₹"),
  "items": [
    {{
      "name": string (dish name, required),
      "category": string (optional, e.g. "Veg", "Non-Veg", "Starter", "Main Course"),
      "description": string (optional),
      "price": string or number (optional; if multiple prices exist, choose the most likely single price or omit),
      "options": [{{"label": string, "price": string or number (optional)}}] (optional variants, e.g. sizes)
    }}
  ]
}}

Guidelines:
- If the text is a WhatsApp chat export, ignore non-menu chatter and timestamps.
- Consolidate duplicate items and prefer the clearest naming.
- Detect currency symbols such as Rs, ₹, $, INR and set currency accordingly.
- Keep descriptions short if present; it's ok to omit.
- If menu-like items are absent, return an empty items array.
- Respond with ONLY JSON. No markdown, no backticks, no commentary.

Text:
---
{text}
---"""


class CompletionClient(Protocol):
    async def generate(self, prompt: str, *, temperature: float = 0.0, response_mime_type: str = "application/json") -> str:
        ...


def build_prompt(text: str) -> str:
    return PROMPT_TEMPLATE.format(text=text)


def compute_retry_delay(error: RateLimitError, attempt: int) -> float:
    """Seconds to wait before the attempt after ``attempt`` (0-based).

    The server's RetryInfo wins; otherwise 2s, 4s, 8s... Always capped at 30s.
    """
    delay = error.retry_after if error.retry_after is not None else (2 ** attempt) * 2
    return min(float(delay), MAX_RETRY_DELAY_SECONDS)


def _reject_constant(name: str):
    # json.loads accepts NaN and Infinity, which are not JSON
    raise ValueError(f"{name} is not valid JSON")


def loads_strict(text: str) -> Any:
    return json.loads(text, parse_constant=_reject_constant)


def salvage_json_object(raw: str) -> Any:
    """Parse the span from the first ``{`` to the last ``}`` in ``raw``."""
    start = raw.find("{")
    end = raw.rfind("}")
    if start == -1 or end <= start:
        raise InvalidModelJSONError(raw)
    try:
        return loads_strict(raw[start:end + 1])
    except ValueError as e:
        raise InvalidModelJSONError(raw) from e


def parse_model_json(raw: str) -> Any:
    try:
        return loads_strict(raw)
    except ValueError:
        logger.info("Model output is not plain JSON, trying to salvage an embedded object")
        return salvage_json_object(raw)


class MenuExtractor:
    """Turns uploaded text into a validated Menu through the completion service.

    Build one per upload; nothing is kept between calls.
    """

    def __init__(
        self,
        completion: CompletionClient,
        *,
        max_attempts: int = MAX_ATTEMPTS,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ):
        self.completion = completion
        self.max_attempts = max_attempts
        self._sleep = sleep

    async def generate_with_retry(self, prompt: str) -> str:
        for attempt in range(self.max_attempts):
            try:
                raw = await self.completion.generate(prompt, temperature=0.0, response_mime_type="application/json")
            except RateLimitError as e:
                if attempt + 1 >= self.max_attempts:
                    logger.error(f"Completion service still rate limited after {self.max_attempts} attempts")
                    raise
                delay = compute_retry_delay(e, attempt)
                logger.warning(f"Rate limited by completion service (attempt {attempt + 1}), retrying in {delay:g}s")
                await self._sleep(delay)
                continue
            raw = (raw or "").strip()
            if not raw:
                raise EmptyResponseError("Empty response from model")
            return raw
        # max_attempts < 1
        raise ValueError("max_attempts must be at least 1")

    async def extract(self, text: str) -> Menu:
        raw = await self.generate_with_retry(build_prompt(text))
        parsed = parse_model_json(raw)
        result = validate_menu(parsed)
        if not result.ok:
            logger.info(f"Model output failed validation with {len(result.issues)} issue(s)")
            raise MenuValidationError(result.issues, raw)
        logger.info(f"Extracted {len(result.menu.items)} menu items (vendor={result.menu.vendor!r})")
        return result.menu
