import logging
import re

import httpx

from ..errors import CompletionServiceError, ConfigurationError, RateLimitError
from ..settings import DEFAULT_GEMINI_BASE_URL, DEFAULT_GEMINI_MODEL, Settings

logger = logging.getLogger(__name__)

_RETRY_DELAY_RE = re.compile(r"^(\d+(?:\.\d+)?)s$")


def parse_retry_delay(error_body) -> float | None:
    """Return the RetryInfo delay in seconds from a Gemini error body, if any.

    Gemini reports it as ``{"error": {"details": [{"@type": "...RetryInfo",
    "retryDelay": "43s"}]}}``.
    """
    if not isinstance(error_body, dict):
        return None
    error = error_body.get("error")
    details = error.get("details") if isinstance(error, dict) else None
    if not isinstance(details, list):
        return None
    for detail in details:
        if not isinstance(detail, dict) or "RetryInfo" not in str(detail.get("@type", "")):
            continue
        match = _RETRY_DELAY_RE.match(str(detail.get("retryDelay", "")).strip())
        if match:
            return float(match.group(1))
    return None


def _error_message(response: httpx.Response, body) -> str:
    if isinstance(body, dict) and isinstance(body.get("error"), dict):
        message = body["error"].get("message")
        if message:
            return str(message)
    return response.text or response.reason_phrase


class GeminiClient:
    """Minimal async client for the Gemini ``generateContent`` endpoint."""

    def __init__(
        self,
        api_key: str | None,
        model: str = DEFAULT_GEMINI_MODEL,
        base_url: str = DEFAULT_GEMINI_BASE_URL,
        timeout: float = 60.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        if not api_key:
            raise ConfigurationError("GEMINI_API_KEY not configured")
        self.api_key = api_key
        self.model = model or DEFAULT_GEMINI_MODEL
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self._transport = transport

    @classmethod
    def from_settings(cls, settings: Settings) -> "GeminiClient":
        return cls(
            settings.gemini_api_key,
            model=settings.gemini_model,
            base_url=settings.gemini_base_url,
            timeout=settings.gemini_timeout_seconds,
        )

    async def generate(self, prompt: str, *, temperature: float = 0.0, response_mime_type: str = "application/json") -> str:
        url = f"{self.base_url}/models/{self.model}:generateContent"
        payload = {
            "contents": [{"role": "user", "parts": [{"text": prompt}]}],
            "generationConfig": {
                "temperature": temperature,
                "responseMimeType": response_mime_type,
            },
        }
        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self._transport) as client:
                response = await client.post(url, json=payload, headers={"x-goog-api-key": self.api_key})
        except httpx.HTTPError as e:
            raise CompletionServiceError(f"Gemini request failed: {e}") from e

        try:
            body = response.json()
        except ValueError:
            body = None

        if response.status_code == 429:
            raise RateLimitError(_error_message(response, body), retry_after=parse_retry_delay(body))
        if response.is_error:
            raise CompletionServiceError(_error_message(response, body), status_code=response.status_code)

        return self._response_text(body)

    @staticmethod
    def _response_text(body) -> str:
        if not isinstance(body, dict):
            return ""
        candidates = body.get("candidates") or []
        if not candidates:
            logger.warning(f"Gemini returned no candidates: {body.get('promptFeedback')}")
            return ""
        parts = (candidates[0].get("content") or {}).get("parts") or []
        return "".join(part.get("text", "") for part in parts if isinstance(part, dict))
