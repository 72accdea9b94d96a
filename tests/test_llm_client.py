import json

import pytest

from mockmate.infrastructure.llm import GeminiRestClient
from mockmate.infrastructure.llm import client as client_module


class FakeResponse:
    def __init__(self, payload=None, status_code=200):
        self.payload = payload or {}
        self.status_code = status_code
        self.text = json.dumps(self.payload)

    def json(self):
        return self.payload


def candidate(text):
    return {"candidates": [{"content": {"parts": [{"text": text}]}}]}


class Recorder(list):
    pass


@pytest.fixture
def recorder(monkeypatch):
    calls = Recorder()
    calls.responses = []

    def fake_post(url, headers=None, json=None, timeout=None):
        calls.append({"url": url, "headers": headers, "json": json, "timeout": timeout})
        return calls.responses.pop(0)

    monkeypatch.setattr(client_module.requests, "post", fake_post)
    return calls


def test_api_key_path_uses_public_endpoint(recorder):
    recorder.responses.append(FakeResponse(candidate("Hello")))
    client = GeminiRestClient(api_key="k-123", model="gemini-2.5-flash", timeout=5)

    assert client.generate_content("Say hi", temperature=0.7) == "Hello"

    call = recorder[0]
    assert call["url"] == "https://generativelanguage.googleapis.com/v1beta/models/gemini-2.5-flash:generateContent"
    assert call["headers"]["x-goog-api-key"] == "k-123"
    assert call["timeout"] == 5
    assert call["json"]["contents"][0]["parts"] == [{"text": "Say hi"}]
    assert call["json"]["generationConfig"]["temperature"] == 0.7


def test_vertex_path_refreshes_token_once(recorder, monkeypatch):
    class FakeCredentials:
        token = None

        def refresh(self, request):
            self.token = "oauth-token"

    refreshes = []

    def fake_default(scopes=None):
        refreshes.append(scopes)
        return FakeCredentials(), "my-project"

    monkeypatch.setattr(client_module.google.auth, "default", fake_default)
    recorder.responses += [FakeResponse(candidate("a")), FakeResponse(candidate("b"))]
    client = GeminiRestClient(project="my-project", location="us-central1")

    client.generate_content("one")
    client.generate_content("two")

    assert recorder[0]["url"].startswith(
        "https://us-central1-aiplatform.googleapis.com/v1/projects/my-project/locations/us-central1/"
    )
    assert recorder[1]["headers"]["Authorization"] == "Bearer oauth-token"
    assert len(refreshes) == 1


def test_parts_and_structured_output(recorder):
    recorder.responses.append(FakeResponse(candidate('{"ok": true}')))
    client = GeminiRestClient(api_key="k")
    parts = [{"inlineData": {"mimeType": "image/jpeg", "data": "QUJD"}}, {"text": "Score this"}]

    assert client.generate_json(parts, {"type": "OBJECT"}) == {"ok": True}

    body = recorder[0]["json"]
    assert body["contents"][0]["parts"] == parts
    assert body["generationConfig"]["responseMimeType"] == "application/json"
    assert body["generationConfig"]["responseSchema"] == {"type": "OBJECT"}


def test_http_error_raises(recorder):
    recorder.responses.append(FakeResponse({"error": "boom"}, status_code=500))
    client = GeminiRestClient(api_key="k")

    with pytest.raises(RuntimeError, match="500"):
        client.generate_content("hi")


def test_unconfigured_client_refuses_to_call(recorder):
    client = GeminiRestClient()
    assert not client.is_configured
    with pytest.raises(RuntimeError):
        client.generate_content("hi")
    assert len(recorder) == 0


def test_json_is_extracted_from_surrounding_text(recorder):
    recorder.responses.append(FakeResponse(candidate('Sure! ```json\n{"score": 80}\n``` done')))
    client = GeminiRestClient(api_key="k")
    assert client.generate_json("x") == {"score": 80}


@pytest.mark.parametrize("text", ["no json here", "[1, 2, 3]"])
def test_invalid_json_raises_value_error(recorder, text):
    recorder.responses.append(FakeResponse(candidate(text)))
    client = GeminiRestClient(api_key="k")
    with pytest.raises(ValueError):
        client.generate_json("x")


def test_multiple_text_parts_are_joined(recorder):
    recorder.responses.append(FakeResponse(
        {"candidates": [{"content": {"parts": [{"text": "Hello, "}, {"text": "world"}]}}]}
    ))
    assert GeminiRestClient(api_key="k").generate_content("x") == "Hello, world"


def test_empty_candidates_return_empty_text(recorder):
    recorder.responses.append(FakeResponse({"candidates": [{"finishReason": "SAFETY"}]}))
    assert GeminiRestClient(api_key="k").generate_content("x") == ""
