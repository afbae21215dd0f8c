import asyncio
import base64
from types import SimpleNamespace

import pytest
from google.genai import types

from spotlight.client import (
    DEFAULT_MODEL,
    SPOTLIGHT_PROMPT,
    UNKNOWN_ERROR_MESSAGE,
    SpotlightClient,
    extract_first_image,
)
from spotlight.errors import RemoteProcessingError

from .fakes import FakeGenai, image_part, make_response

SOURCE = b"\xff\xd8\xff\xe0source"
SOURCE_B64 = base64.b64encode(SOURCE).decode()


def _client(**kwargs):
    fake = FakeGenai(**kwargs)
    return SpotlightClient(api_key="test-key", client=fake), fake.models


def test_request_has_image_then_prompt_and_image_only_output():
    client, models = _client(response=make_response(image_part(b"out")))

    asyncio.run(client.process(SOURCE_B64, "image/jpeg"))

    assert len(models.calls) == 1
    call = models.calls[0]
    assert call["model"] == DEFAULT_MODEL
    first, second = call["contents"]
    assert first.inline_data.data == SOURCE
    assert first.inline_data.mime_type == "image/jpeg"
    assert second.text == SPOTLIGHT_PROMPT
    assert call["config"].response_modalities == ["IMAGE"]


def test_model_override():
    fake = FakeGenai(response=make_response(image_part(b"out")))
    client = SpotlightClient(api_key="k", model="gemini-3-pro-image-preview", client=fake)

    asyncio.run(client.process(SOURCE_B64, "image/png"))

    assert fake.models.calls[0]["model"] == "gemini-3-pro-image-preview"


def test_returns_payload_bytes_unmodified():
    payload = bytes(range(256))
    client, _ = _client(response=make_response(types.Part(text="here you go"), image_part(payload)))

    assert asyncio.run(client.process(SOURCE_B64, "image/png")) == payload


def test_first_inline_part_wins():
    client, _ = _client(response=make_response(image_part(b"first"), image_part(b"second")))

    assert asyncio.run(client.process(SOURCE_B64, "image/png")) == b"first"


def test_empty_first_inline_part_means_no_image():
    client, _ = _client(response=make_response(image_part(b""), image_part(b"second")))

    assert asyncio.run(client.process(SOURCE_B64, "image/png")) is None


def test_no_inline_part_returns_none():
    client, _ = _client(response=make_response(types.Part(text="I can't do that.")))

    assert asyncio.run(client.process(SOURCE_B64, "image/png")) is None


def test_empty_response_returns_none():
    assert extract_first_image(types.GenerateContentResponse()) is None
    assert extract_first_image(types.GenerateContentResponse(candidates=[types.Candidate()])) is None


def test_string_payload_is_base64_decoded():
    inline = SimpleNamespace(data=base64.b64encode(b"png").decode(), mime_type="image/png")
    response = SimpleNamespace(
        candidates=[SimpleNamespace(content=SimpleNamespace(parts=[SimpleNamespace(inline_data=inline)]))]
    )

    assert extract_first_image(response) == b"png"


def test_transport_failure_is_normalised():
    client, _ = _client(error=ConnectionError("connection reset by peer"))

    with pytest.raises(RemoteProcessingError) as exc_info:
        asyncio.run(client.process(SOURCE_B64, "image/png"))

    assert str(exc_info.value) == "Gemini API Error: connection reset by peer"
    assert isinstance(exc_info.value.__cause__, ConnectionError)


def test_failure_without_message_is_unknown_error():
    client, _ = _client(error=RuntimeError())

    with pytest.raises(RemoteProcessingError, match=UNKNOWN_ERROR_MESSAGE):
        asyncio.run(client.process(SOURCE_B64, "image/png"))


def test_single_attempt_on_failure():
    client, models = _client(error=TimeoutError("deadline exceeded"))

    with pytest.raises(RemoteProcessingError):
        asyncio.run(client.process(SOURCE_B64, "image/png"))

    assert len(models.calls) == 1
