"""Image embedding client for the Hugging Face inference endpoint."""

from __future__ import annotations

import time
from typing import Any, Callable, Optional

import httpx
import orjson

from petmatch.config import Settings
from petmatch.errors import BadResponse, TransientUnavailable
from petmatch.utils.logging import get_logger


logger = get_logger(__name__)

WARMING_UP_MARKERS = ("currently loading", "is loading", "warming up")


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def _warm_up_wait(payload: Any) -> Optional[float]:
    """Return the suggested wait when the payload says the model is loading, else None."""
    if not isinstance(payload, dict):
        return None

    error = payload.get("error")
    if not isinstance(error, str):
        return None
    if not any(marker in error.lower() for marker in WARMING_UP_MARKERS):
        return None

    estimated = payload.get("estimated_time")
    if _is_number(estimated) and estimated > 0:
        return float(estimated)
    return 0.0


def parse_vector(payload: Any) -> list[float]:
    """Validate an embedding payload and return it as a flat list of floats."""
    vector = payload
    if (
        isinstance(vector, list)
        and len(vector) == 1
        and isinstance(vector[0], list)
    ):
        vector = vector[0]

    if not isinstance(vector, list) or not vector:
        raise BadResponse(f"Expected a non-empty numeric vector, got {type(payload).__name__}")
    if not all(_is_number(value) for value in vector):
        raise BadResponse("Embedding payload contains non-numeric values")
    return [float(value) for value in vector]


class EmbeddingClient:
    """Fetch a visual feature vector for an image URL with bounded warm-up retries."""

    def __init__(
        self,
        settings: Optional[Settings] = None,
        client: Optional[httpx.Client] = None,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        self.settings = settings or Settings()
        if not self.settings.hf_api_key:
            raise ValueError("HF_API_KEY must be set for image embeddings")
        self._client = client
        self._sleep = sleep

    def get_embedding(self, image_url: str) -> list[float]:
        """Return the embedding for image_url.

        Raises TransientUnavailable when the provider keeps warming up (or the
        transport keeps failing) for the whole attempt budget, and BadResponse
        when it answers with something that is not a vector.
        """
        if self._client is not None:
            return self._get_with_retry(self._client, image_url)

        with httpx.Client(timeout=self.settings.embedding_timeout_seconds) as client:
            return self._get_with_retry(client, image_url)

    def _get_with_retry(self, client: httpx.Client, image_url: str) -> list[float]:
        attempts = max(1, self.settings.embedding_max_attempts)
        last_wait: Optional[float] = None

        for attempt in range(1, attempts + 1):
            try:
                payload = self._request(client, image_url)
            except httpx.RequestError as exc:
                wait = self.settings.embedding_default_wait_seconds
                logger.warning(
                    "embedding.request_error attempt=%s/%s error=%s", attempt, attempts, exc
                )
            else:
                wait = _warm_up_wait(payload)
                if wait is None:
                    vector = parse_vector(payload)
                    logger.debug("embedding.ok attempt=%s dims=%s", attempt, len(vector))
                    return vector
                wait = wait or self.settings.embedding_default_wait_seconds
                logger.info(
                    "embedding.warming_up attempt=%s/%s wait_seconds=%s", attempt, attempts, wait
                )

            last_wait = wait
            if attempt < attempts:
                self._sleep(wait)

        raise TransientUnavailable(
            f"Embedding provider unavailable after {attempts} attempts",
            attempts=attempts,
            retry_after=last_wait,
        )

    def _request(self, client: httpx.Client, image_url: str) -> Any:
        response = client.post(
            self.settings.embedding_api_url,
            headers={"Authorization": f"Bearer {self.settings.hf_api_key}"},
            json={"inputs": image_url},
        )
        try:
            return orjson.loads(response.content)
        except orjson.JSONDecodeError as exc:
            raise BadResponse(
                f"Embedding provider returned non-JSON body (status {response.status_code})"
            ) from exc
