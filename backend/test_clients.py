"""Provider clients: request bodies, reply extraction, transport errors"""

import pytest
import requests

from diagramflow.config import GeneratorSettings
from diagramflow.errors import InputValidationError, TransportError
from diagramflow.inference import chat_completions_client, ollama_client
from diagramflow.inference.chat_completions_client import ChatCompletionsClient
from diagramflow.inference.config import get_llm_client
from diagramflow.inference.images import encode_image_data_uri
from diagramflow.inference.ollama_client import OllamaClient
from diagramflow.inference.prompt import IMAGE_UNSUPPORTED_NOTE, SYSTEM_PROMPT, build_diagram_prompt
from conftest import FakeResponse


@pytest.fixture
def capture_post(monkeypatch):
    def install(module, response):
        calls = []

        def fake_post(url, **kwargs):
            calls.append({"url": url, **kwargs})
            if isinstance(response, Exception):
                raise response
            return response

        monkeypatch.setattr(module.requests, "post", fake_post)
        return calls

    return install


# ------------------------------------------------
# Ollama
# ------------------------------------------------

def test_ollama_generate_endpoint(capture_post):
    calls = capture_post(ollama_client, FakeResponse({"response": "{}"}))
    client = OllamaClient(endpoint="http://localhost:11434/api/generate", model="llama3")

    assert client.generate("draw it") == "{}"
    assert calls[0]["url"] == "http://localhost:11434/api/generate"
    assert calls[0]["json"] == {"model": "llama3", "prompt": "draw it", "stream": False}


def test_ollama_chat_endpoint(capture_post):
    calls = capture_post(ollama_client, FakeResponse({"message": {"role": "assistant", "content": "hi"}}))
    client = OllamaClient(endpoint="http://localhost:11434/api/chat", model="mistral")

    assert client.generate("draw it") == "hi"
    assert calls[0]["json"] == {
        "model": "mistral",
        "messages": [{"role": "user", "content": "draw it"}],
        "stream": False,
    }


def test_ollama_missing_field_yields_empty_text(capture_post):
    capture_post(ollama_client, FakeResponse({}))
    assert OllamaClient().generate("x") == ""


def test_ollama_http_error(capture_post):
    capture_post(ollama_client, FakeResponse(status_code=404, reason="Not Found"))

    with pytest.raises(TransportError) as exc:
        OllamaClient().generate("x")

    assert exc.value.status_code == 404
    assert exc.value.provider == "Ollama"
    assert "404" in str(exc.value)


def test_ollama_connection_error(capture_post):
    capture_post(ollama_client, requests.ConnectionError("refused"))

    with pytest.raises(TransportError) as exc:
        OllamaClient().generate("x")

    assert exc.value.status_code is None


def html_page(status_code=200):
    response = requests.Response()
    response.status_code = status_code
    response.reason = "OK"
    response._content = b"<html>proxy login</html>"
    return response


def test_ollama_non_json_body(capture_post):
    capture_post(ollama_client, html_page())

    with pytest.raises(TransportError) as exc:
        OllamaClient().generate("x")

    assert exc.value.status_code == 200
    assert exc.value.provider == "Ollama"
    assert "proxy login" in exc.value.detail


# ------------------------------------------------
# Chat completions
# ------------------------------------------------

def chat_reply(content):
    return FakeResponse({"choices": [{"message": {"role": "assistant", "content": content}}]})


def test_chat_completions_request(capture_post):
    calls = capture_post(chat_completions_client, chat_reply("{}"))
    client = ChatCompletionsClient(api_key="sk-test", model="gpt-4")

    assert client.generate("draw it") == "{}"

    call = calls[0]
    assert call["url"] == "https://api.openai.com/v1/chat/completions"
    assert call["headers"]["Authorization"] == "Bearer sk-test"
    assert call["json"]["temperature"] == 0.7
    assert call["json"]["model"] == "gpt-4"
    assert call["json"]["messages"] == [
        {"role": "system", "content": SYSTEM_PROMPT},
        {"role": "user", "content": "draw it"},
    ]


def test_image_parts_for_vision_model(capture_post):
    calls = capture_post(chat_completions_client, chat_reply("{}"))
    client = ChatCompletionsClient(api_key="sk-test", model="gpt-4o")

    client.generate("draw it", image="data:image/png;base64,AAAA")

    user = calls[0]["json"]["messages"][1]
    assert user["content"] == [
        {"type": "text", "text": "draw it"},
        {"type": "image_url", "image_url": {"url": "data:image/png;base64,AAAA"}},
    ]


def test_image_note_for_text_only_model(capture_post):
    calls = capture_post(chat_completions_client, chat_reply("{}"))
    client = ChatCompletionsClient(api_key="sk-test", model="gpt-3.5-turbo")

    client.generate("draw it", image="data:image/png;base64,AAAA")

    assert calls[0]["json"]["messages"][1]["content"] == "draw it" + IMAGE_UNSUPPORTED_NOTE


def test_chat_completions_http_error(capture_post):
    capture_post(
        chat_completions_client,
        FakeResponse(status_code=401, reason="Unauthorized", text='{"error": "bad key"}'),
    )

    with pytest.raises(TransportError) as exc:
        ChatCompletionsClient(api_key="sk-bad").generate("x")

    assert exc.value.status_code == 401
    assert exc.value.provider == "OpenAI"
    assert "bad key" in str(exc.value)


def test_chat_completions_non_json_body(capture_post):
    capture_post(chat_completions_client, html_page())

    with pytest.raises(TransportError) as exc:
        ChatCompletionsClient(api_key="sk-test").generate("x")

    assert exc.value.status_code == 200
    assert exc.value.provider == "OpenAI"
    assert "invalid JSON body" in str(exc.value)


def test_chat_completions_requires_key():
    with pytest.raises(InputValidationError):
        ChatCompletionsClient(api_key="")


# ------------------------------------------------
# Factory, prompt, images
# ------------------------------------------------

def test_client_factory():
    assert isinstance(get_llm_client(GeneratorSettings(api_mode="local")), OllamaClient)

    cloud = get_llm_client(GeneratorSettings(api_mode="cloud", openai_api_key="sk-x", openai_model="gpt-4o"))
    assert isinstance(cloud, ChatCompletionsClient)
    assert cloud.supports_images

    with pytest.raises(InputValidationError):
        get_llm_client(GeneratorSettings(api_mode="cloud", openai_api_key=""))


def test_prompt_embeds_description():
    prompt = build_diagram_prompt("  A→B→C linear flow ")

    assert 'description: "A→B→C linear flow"' in prompt
    assert '"nodes"' in prompt and '"edges"' in prompt
    assert '{ "x": 100, "y": 100 }' in prompt


def test_encode_image_data_uri(tmp_path):
    image = tmp_path / "sketch.png"
    image.write_bytes(b"\x89PNG")

    assert encode_image_data_uri(image) == "data:image/png;base64,iVBORw=="
