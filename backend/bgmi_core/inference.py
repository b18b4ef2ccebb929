from __future__ import annotations

import base64
import logging
import time
from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, Dict, Optional

import httpx

from .settings import Settings


logger = logging.getLogger(__name__)

RETRYABLE_STATUS = {429, 503}


class InferenceErrorKind(str, Enum):
    BAD_REQUEST = "bad_request"
    AUTH = "auth"
    RATE_LIMITED = "rate_limited"
    UNAVAILABLE = "unavailable"
    TIMEOUT = "timeout"
    GENERIC = "generic"


RETRYABLE_KINDS = {
    InferenceErrorKind.RATE_LIMITED,
    InferenceErrorKind.UNAVAILABLE,
    InferenceErrorKind.TIMEOUT,
}

_MESSAGES = {
    InferenceErrorKind.BAD_REQUEST: "Invalid request to Gemini API. Please check your images.",
    InferenceErrorKind.AUTH: "API key is invalid or has insufficient permissions.",
    InferenceErrorKind.RATE_LIMITED: "Rate limit exceeded. Please wait a moment and try again.",
    InferenceErrorKind.UNAVAILABLE: "Gemini API is overloaded or temporarily unavailable. Please try again later.",
    InferenceErrorKind.TIMEOUT: "Request timeout. Please try again.",
}


class InferenceError(Exception):
    """Terminal failure of an image-to-text call, classified by ``kind``."""

    def __init__(self, kind: InferenceErrorKind, message: str | None = None) -> None:
        self.kind = kind
        self.message = message or _MESSAGES.get(kind, "Gemini API error")
        super().__init__(self.message)

    @property
    def retryable(self) -> bool:
        return self.kind in RETRYABLE_KINDS


class RetryState(str, Enum):
    ATTEMPTING = "attempting"
    BACKING_OFF = "backing_off"
    SUCCEEDED = "succeeded"
    FAILED_TERMINAL = "failed_terminal"


@dataclass
class RetryTracker:
    max_retries: int
    base_delay: float
    state: RetryState = RetryState.ATTEMPTING
    attempt: int = 0
    total_delay: float = 0.0
    last_error: Optional[InferenceError] = None

    @property
    def max_attempts(self) -> int:
        return self.max_retries + 1

    def start_attempt(self) -> None:
        self.state = RetryState.ATTEMPTING
        self.attempt += 1

    def succeed(self) -> None:
        self.state = RetryState.SUCCEEDED
        self.last_error = None

    def fail(self, error: InferenceError) -> Optional[float]:
        """Record a failed attempt and return the backoff delay, if any."""

        self.last_error = error
        if error.retryable and self.attempt <= self.max_retries:
            delay = self.base_delay * (2 ** (self.attempt - 1))
            self.state = RetryState.BACKING_OFF
            self.total_delay += delay
            return delay
        self.state = RetryState.FAILED_TERMINAL
        return None


def _upstream_message(response: httpx.Response) -> str:
    try:
        payload = response.json()
    except ValueError:
        return ""
    if isinstance(payload, dict):
        error = payload.get("error")
        if isinstance(error, dict):
            return str(error.get("message") or "")
    return ""


def classify_status_error(exc: httpx.HTTPStatusError) -> InferenceError:
    status = exc.response.status_code
    upstream = _upstream_message(exc.response)
    if status == 400:
        return InferenceError(InferenceErrorKind.BAD_REQUEST)
    if status in (401, 403):
        return InferenceError(InferenceErrorKind.AUTH)
    if status == 429:
        return InferenceError(InferenceErrorKind.RATE_LIMITED)
    if status == 503 or "overloaded" in upstream.lower():
        return InferenceError(InferenceErrorKind.UNAVAILABLE)
    if upstream:
        return InferenceError(InferenceErrorKind.GENERIC, f"Gemini API error: {upstream}")
    return InferenceError(InferenceErrorKind.GENERIC, f"Gemini API error: HTTP {status}")


def _extract_text(payload: Any) -> str:
    try:
        text = payload["candidates"][0]["content"]["parts"][0]["text"]
    except (KeyError, IndexError, TypeError) as exc:
        raise InferenceError(
            InferenceErrorKind.GENERIC, "Gemini API error: response did not contain any text"
        ) from exc
    return str(text)


class InferenceClient:
    """Sends one image plus an instruction to Gemini and returns its text answer."""

    def __init__(self, settings: Settings, sleep: Callable[[float], None] = time.sleep) -> None:
        self.settings = settings
        self._sleep = sleep

    def invoke(self, image: bytes, instruction: str, mime_type: str = "image/jpeg") -> str:
        if not self.settings.api_key:
            raise InferenceError(InferenceErrorKind.AUTH, "GEMINI_API_KEY is not configured.")

        body = self._request_body(image, instruction, mime_type)
        tracker = RetryTracker(max_retries=self.settings.max_retries, base_delay=self.settings.backoff_seconds)

        while True:
            tracker.start_attempt()
            logger.info(
                "Calling Gemini API (attempt %s/%s, image %s KB)",
                tracker.attempt,
                tracker.max_attempts,
                round(len(image) / 1024),
            )
            try:
                text = self._post(body)
            except InferenceError as error:
                delay = tracker.fail(error)
                if delay is None:
                    logger.warning("Gemini API call failed after %s attempt(s): %s", tracker.attempt, error)
                    raise
                logger.info("Retrying Gemini API call in %.0f seconds (%s)", delay, error.kind.value)
                self._sleep(delay)
                continue

            tracker.succeed()
            return text

    def _post(self, body: Dict[str, Any]) -> str:
        params = {"key": self.settings.api_key}
        headers = {"Content-Type": "application/json"}
        try:
            with httpx.Client(timeout=self.settings.timeout_seconds) as client:
                response = client.post(self.settings.endpoint, params=params, json=body, headers=headers)
                response.raise_for_status()
                payload = response.json()
        except httpx.TimeoutException as exc:
            raise InferenceError(InferenceErrorKind.TIMEOUT) from exc
        except httpx.HTTPStatusError as exc:
            raise classify_status_error(exc) from exc
        except httpx.HTTPError as exc:
            raise InferenceError(InferenceErrorKind.GENERIC, f"Gemini API error: {exc}") from exc
        except ValueError as exc:
            raise InferenceError(
                InferenceErrorKind.GENERIC, "Gemini API error: response was not valid JSON"
            ) from exc
        return _extract_text(payload)

    @staticmethod
    def _request_body(image: bytes, instruction: str, mime_type: str) -> Dict[str, Any]:
        return {
            "contents": [
                {
                    "parts": [
                        {"text": instruction},
                        {
                            "inlineData": {
                                "mimeType": mime_type or "image/jpeg",
                                "data": base64.b64encode(image).decode("ascii"),
                            }
                        },
                    ]
                }
            ]
        }
