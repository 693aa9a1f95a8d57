"""Gemini vision check: are two pet photos the same animal?"""

from __future__ import annotations

import base64
import re
import time
from dataclasses import dataclass
from typing import Any, Optional

import httpx

from petmatch.config import Settings
from petmatch.utils.logging import get_logger


logger = get_logger(__name__)


VERIFICATION_PROMPT = """Compare these two pet images.
Are they likely the same animal?

Focus on:
- Unique markings
- Fur patterns
- Facial structure

Respond exactly in this format:
Match Probability: [0-100]%
Reason: <short explanation>
"""

_PROBABILITY_RE = re.compile(r"match\s+probability\s*:\s*(\d{1,3})\s*%", re.IGNORECASE)
_REASON_PREFIX_RE = re.compile(r"^\s*reason\s*:\s*", re.IGNORECASE)


@dataclass(frozen=True)
class VerificationVerdict:
    available: bool
    probability: Optional[int] = None
    rationale: Optional[str] = None
    raw_text: Optional[str] = None
    latency_ms: int = 0


UNAVAILABLE = VerificationVerdict(available=False)


def parse_verdict(text: Optional[str]) -> VerificationVerdict:
    """Parse the model's semi-structured answer into a verdict.

    Expects a ``Match Probability: NN%`` line; the rationale is the next non-empty
    line with any ``Reason:`` prefix removed. Anything else is unavailable.
    """
    if not text:
        return UNAVAILABLE

    lines = text.splitlines()
    for index, line in enumerate(lines):
        match = _PROBABILITY_RE.search(line)
        if not match:
            continue

        probability = int(match.group(1))
        if probability > 100:
            return VerificationVerdict(available=False, raw_text=text)

        rationale = None
        for following in lines[index + 1 :]:
            if following.strip():
                rationale = _REASON_PREFIX_RE.sub("", following).strip() or None
                break
        return VerificationVerdict(
            available=True,
            probability=probability,
            rationale=rationale,
            raw_text=text,
        )

    return VerificationVerdict(available=False, raw_text=text)


def _extract_text_from_response(payload: Any) -> str:
    if not isinstance(payload, dict):
        raise ValueError("Gemini response is not an object")
    candidates = payload.get("candidates") or []
    if not isinstance(candidates, list) or not candidates or not isinstance(candidates[0], dict):
        raise ValueError("Gemini response missing candidates")

    content = candidates[0].get("content")
    parts = content.get("parts") if isinstance(content, dict) else None
    if not isinstance(parts, list):
        parts = []
    texts = [
        part["text"] for part in parts if isinstance(part, dict) and isinstance(part.get("text"), str)
    ]
    if not texts:
        raise ValueError("Gemini response missing text parts")
    return "\n".join(texts).strip()


class VerificationClient:
    """Minimal REST client for a two-image Gemini generateContent call."""

    def __init__(
        self,
        settings: Optional[Settings] = None,
        client: Optional[httpx.Client] = None,
    ) -> None:
        self.settings = settings or Settings()
        if not self.settings.google_api_key:
            raise ValueError("GOOGLE_API_KEY must be set for visual verification")
        self._client = client

    def verify(self, image_a_url: str, image_b_url: str) -> VerificationVerdict:
        """Ask the model whether both photos show the same animal. Never raises."""
        start = time.time()
        try:
            if self._client is not None:
                text = self._request(self._client, image_a_url, image_b_url)
            else:
                with httpx.Client(timeout=self.settings.verification_timeout_seconds) as client:
                    text = self._request(client, image_a_url, image_b_url)
        except (httpx.HTTPError, ValueError) as exc:
            logger.warning("verification.failed", extra={"error": str(exc)})
            return UNAVAILABLE

        verdict = parse_verdict(text)
        latency_ms = int((time.time() - start) * 1000)
        if not verdict.available:
            logger.warning("verification.unparseable latency_ms=%s", latency_ms)
        return VerificationVerdict(
            available=verdict.available,
            probability=verdict.probability,
            rationale=verdict.rationale,
            raw_text=verdict.raw_text,
            latency_ms=latency_ms,
        )

    def _request(self, client: httpx.Client, image_a_url: str, image_b_url: str) -> str:
        url = (
            f"{self.settings.gemini_api_base_url}/models/"
            f"{self.settings.gemini_model_id}:generateContent"
        )
        params = {"key": self.settings.google_api_key}
        body: dict[str, Any] = {
            "contents": [
                {
                    "role": "user",
                    "parts": [
                        {"text": VERIFICATION_PROMPT},
                        self._inline_image(client, image_a_url),
                        self._inline_image(client, image_b_url),
                    ],
                }
            ],
        }

        response = client.post(url, params=params, json=body)
        response.raise_for_status()
        return _extract_text_from_response(response.json())

    def _inline_image(self, client: httpx.Client, image_url: str) -> dict[str, Any]:
        response = client.get(image_url)
        response.raise_for_status()
        mime_type = response.headers.get("content-type", "image/jpeg").split(";")[0].strip()
        return {
            "inlineData": {
                "mimeType": mime_type or "image/jpeg",
                "data": base64.b64encode(response.content).decode("ascii"),
            }
        }
