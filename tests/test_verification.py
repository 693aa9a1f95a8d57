import base64

import httpx
import pytest

from petmatch.config import Settings
from petmatch.providers.verification import VerificationClient, parse_verdict


GEMINI_TEXT = "Match Probability: 85%\nReason: Same white blaze on the chest and torn left ear."


def test_parse_verdict_reads_probability_and_reason():
    verdict = parse_verdict(GEMINI_TEXT)
    assert verdict.available is True
    assert verdict.probability == 85
    assert verdict.rationale == "Same white blaze on the chest and torn left ear."


def test_parse_verdict_tolerates_surrounding_text_and_blank_lines():
    text = "Here is my assessment.\n\n**Match Probability: 40 %**\n\nReason: Different tail shape.\n"
    verdict = parse_verdict(text)
    assert verdict.probability == 40
    assert verdict.rationale == "Different tail shape."


def test_parse_verdict_without_reason_line():
    verdict = parse_verdict("Match Probability: 0%")
    assert verdict.available is True
    assert verdict.probability == 0
    assert verdict.rationale is None


@pytest.mark.parametrize(
    "text",
    [None, "", "AI Verification unavailable", "Match Probability: high", "Match Probability: 150%"],
)
def test_parse_verdict_unavailable_on_unparseable_text(text):
    verdict = parse_verdict(text)
    assert verdict.available is False
    assert verdict.probability is None


def _gemini_handler(text: str, calls: list[httpx.Request]):
    def handler(request: httpx.Request) -> httpx.Response:
        calls.append(request)
        if request.method == "GET":
            return httpx.Response(200, content=b"jpeg-bytes", headers={"content-type": "image/jpeg"})
        return httpx.Response(
            200,
            json={"candidates": [{"content": {"parts": [{"text": text}]}}]},
        )

    return handler


def test_verify_sends_both_images_and_parses_answer():
    calls: list[httpx.Request] = []
    http = httpx.Client(transport=httpx.MockTransport(_gemini_handler(GEMINI_TEXT, calls)))
    client = VerificationClient(Settings(google_api_key="g-test"), client=http)

    verdict = client.verify("https://img.example/a.jpg", "https://img.example/b.jpg")

    assert verdict.available is True
    assert verdict.probability == 85
    post = calls[-1]
    assert post.method == "POST"
    assert post.url.path.endswith(":generateContent")
    assert post.url.params["key"] == "g-test"
    body = httpx.Response(200, content=post.content).json()
    parts = body["contents"][0]["parts"]
    assert "Match Probability" in parts[0]["text"]
    assert parts[1]["inlineData"]["data"] == base64.b64encode(b"jpeg-bytes").decode("ascii")
    assert parts[2]["inlineData"]["mimeType"] == "image/jpeg"


def test_verify_returns_unavailable_on_http_error():
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(500, json={"error": "boom"})

    http = httpx.Client(transport=httpx.MockTransport(handler))
    client = VerificationClient(Settings(google_api_key="g-test"), client=http)

    verdict = client.verify("https://img.example/a.jpg", "https://img.example/b.jpg")

    assert verdict.available is False


def test_verify_returns_unavailable_on_empty_candidates():
    def handler(request: httpx.Request) -> httpx.Response:
        if request.method == "GET":
            return httpx.Response(200, content=b"jpeg-bytes")
        return httpx.Response(200, json={"candidates": []})

    http = httpx.Client(transport=httpx.MockTransport(handler))
    client = VerificationClient(Settings(google_api_key="g-test"), client=http)

    assert client.verify("https://img.example/a.jpg", "https://img.example/b.jpg").available is False


@pytest.mark.parametrize(
    "body",
    [
        [{"error": "quota"}],
        {"candidates": ["not-a-dict"]},
        {"candidates": [{"content": "text"}]},
        {"candidates": [{"content": {"parts": ["plain", 3]}}]},
        {"candidates": [{"content": {"parts": 7}}]},
    ],
)
def test_verify_returns_unavailable_on_malformed_body(body):
    def handler(request: httpx.Request) -> httpx.Response:
        if request.method == "GET":
            return httpx.Response(200, content=b"jpeg-bytes")
        return httpx.Response(200, json=body)

    http = httpx.Client(transport=httpx.MockTransport(handler))
    client = VerificationClient(Settings(google_api_key="g-test"), client=http)

    verdict = client.verify("https://img.example/a.jpg", "https://img.example/b.jpg")

    assert verdict.available is False
    assert verdict.probability is None


def test_requires_api_key():
    with pytest.raises(ValueError):
        VerificationClient(Settings(google_api_key=None))
