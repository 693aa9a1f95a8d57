import httpx
import orjson
import pytest

from petmatch.config import Settings
from petmatch.errors import BadResponse, TransientUnavailable
from petmatch.providers.embedding import EmbeddingClient, parse_vector


WARMING_UP = {"error": "Model google/vit-base-patch16-224 is currently loading", "estimated_time": 2.0}


def _settings(**overrides) -> Settings:
    values = {"hf_api_key": "hf-test", "embedding_default_wait_seconds": 5.0}
    values.update(overrides)
    return Settings(**values)


def _client(responses, settings=None):
    """Build an EmbeddingClient replaying responses; returns (client, requests, sleeps)."""
    queue = list(responses)
    requests: list[httpx.Request] = []
    sleeps: list[float] = []

    def handler(request: httpx.Request) -> httpx.Response:
        requests.append(request)
        item = queue.pop(0) if len(queue) > 1 else queue[0]
        if isinstance(item, Exception):
            raise type(item)(str(item), request=request)
        if isinstance(item, httpx.Response):
            return item
        status = 503 if isinstance(item, dict) and "error" in item else 200
        return httpx.Response(status, json=item)

    http = httpx.Client(transport=httpx.MockTransport(handler))
    client = EmbeddingClient(settings or _settings(), client=http, sleep=sleeps.append)
    return client, requests, sleeps


def test_returns_vector_and_sends_image_reference():
    client, requests, sleeps = _client([[0.1, 0.2, 0.3]])

    assert client.get_embedding("https://img.example/dog.jpg") == [0.1, 0.2, 0.3]

    assert len(requests) == 1
    assert requests[0].headers["Authorization"] == "Bearer hf-test"
    assert orjson.loads(requests[0].content) == {"inputs": "https://img.example/dog.jpg"}
    assert sleeps == []


def test_unwraps_single_nested_row():
    client, _, _ = _client([[[1, 2, 3]]])
    assert client.get_embedding("https://img.example/dog.jpg") == [1.0, 2.0, 3.0]


def test_warming_up_three_times_raises_transient_unavailable():
    client, requests, sleeps = _client([WARMING_UP])

    with pytest.raises(TransientUnavailable) as excinfo:
        client.get_embedding("https://img.example/dog.jpg")

    assert len(requests) == 3
    assert sleeps == [2.0, 2.0]
    assert excinfo.value.attempts == 3
    assert excinfo.value.retry_after == 2.0


def test_warming_up_then_success_waits_suggested_time():
    client, requests, sleeps = _client([WARMING_UP, [0.5, 0.5]])

    assert client.get_embedding("https://img.example/dog.jpg") == [0.5, 0.5]
    assert len(requests) == 2
    assert sleeps == [2.0]


def test_warming_up_without_estimate_uses_default_wait():
    client, _, sleeps = _client([{"error": "Model is currently loading"}, [1.0]])

    client.get_embedding("https://img.example/dog.jpg")

    assert sleeps == [5.0]


def test_retry_budget_is_configurable():
    client, requests, sleeps = _client([WARMING_UP], settings=_settings(embedding_max_attempts=5))

    with pytest.raises(TransientUnavailable):
        client.get_embedding("https://img.example/dog.jpg")

    assert len(requests) == 5
    assert len(sleeps) == 4


def test_transport_errors_consume_retry_budget():
    client, requests, sleeps = _client([httpx.ConnectError("connection refused")])

    with pytest.raises(TransientUnavailable):
        client.get_embedding("https://img.example/dog.jpg")

    assert len(requests) == 3
    assert sleeps == [5.0, 5.0]


def test_provider_error_payload_is_bad_response_without_retry():
    client, requests, sleeps = _client([httpx.Response(401, json={"error": "Invalid credentials"})])

    with pytest.raises(BadResponse):
        client.get_embedding("https://img.example/dog.jpg")

    assert len(requests) == 1
    assert sleeps == []


def test_non_json_body_is_bad_response():
    client, _, _ = _client([httpx.Response(502, text="<html>Bad gateway</html>")])

    with pytest.raises(BadResponse):
        client.get_embedding("https://img.example/dog.jpg")


def test_parse_vector_rejects_non_vectors():
    for payload in ([], {"label": "dog"}, ["a", "b"], [[1.0], [2.0]], [True, 1.0], None):
        with pytest.raises(BadResponse):
            parse_vector(payload)


def test_requires_api_key():
    with pytest.raises(ValueError):
        EmbeddingClient(Settings(hf_api_key=None))
