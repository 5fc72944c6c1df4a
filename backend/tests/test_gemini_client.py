"""
Tests for the Gemini collaborator client, against a mocked transport.
"""

import json

import httpx
import pytest

from packcheck.services.ai import GeminiClient
from packcheck.services.ai.gemini import image_part
from shared.utils.exceptions import ExternalCollaboratorError

STRUCTURED = {
    "type": "delivery",
    "check_number": "2044",
    "customer": {"name": "Luis", "address": "12 Elm St"},
    "items": [{"name": "Burrito", "quantity": 1, "price": 12.5, "modifiers": []}],
    "subtotal_amount": 12.5,
    "tax_amount": 1.0,
    "total_amount": 13.5,
}


def _reply(payload, status_code=200):
    body = {"candidates": [{"content": {"parts": [{"text": json.dumps(payload)}]}}]}
    return httpx.Response(status_code, json=body)


def _client(handler):
    return GeminiClient(
        api_key="test-key",
        base_url="https://gemini.test/v1beta",
        transport=httpx.MockTransport(handler),
    )


class TestImagePart:

    def test_plain_base64_defaults_to_jpeg(self):
        assert image_part("AAAA") == {"inline_data": {"mime_type": "image/jpeg", "data": "AAAA"}}

    def test_data_url(self):
        part = image_part("data:image/png;base64,BBBB")
        assert part == {"inline_data": {"mime_type": "image/png", "data": "BBBB"}}


class TestGeminiClient:

    @pytest.mark.asyncio
    async def test_structure_order(self):
        seen = {}

        def handler(request: httpx.Request):
            seen["url"] = str(request.url)
            seen["key"] = request.headers["x-goog-api-key"]
            seen["body"] = json.loads(request.content)
            return _reply(STRUCTURED)

        client = _client(handler)
        structured = await client.structure_order("Check #2044\n1 Burrito")
        await client.close()

        assert structured.check_number == "2044"
        assert structured.items[0].price == 12.5
        assert seen["url"].startswith("https://gemini.test/v1beta/models/")
        assert seen["url"].endswith(":generateContent")
        assert seen["key"] == "test-key"
        assert "Check #2044" in seen["body"]["contents"][0]["parts"][0]["text"]
        assert seen["body"]["generationConfig"]["responseMimeType"] == "application/json"

    @pytest.mark.asyncio
    async def test_verify_images_sends_inline_parts(self):
        seen = {}

        def handler(request: httpx.Request):
            seen["parts"] = json.loads(request.content)["contents"][0]["parts"]
            return _reply({"match": True, "confidence": 88})

        result = await _client(handler).verify_images("prompt", ["AAAA", "BBBB"])

        assert result.match is True
        assert result.confidence == 88
        assert seen["parts"][0] == {"text": "prompt"}
        assert len(seen["parts"]) == 3

    @pytest.mark.asyncio
    @pytest.mark.parametrize("status_code, expected", [(429, 503), (500, 503), (400, 502)])
    async def test_http_errors(self, status_code, expected):
        client = _client(lambda request: httpx.Response(status_code, json={"error": "x"}))

        with pytest.raises(ExternalCollaboratorError) as exc_info:
            await client.structure_order("text")

        assert exc_info.value.status_code == expected
        assert exc_info.value.retryable is True

    @pytest.mark.asyncio
    async def test_transport_error_is_unavailable(self):
        def handler(request):
            raise httpx.ConnectTimeout("timed out", request=request)

        with pytest.raises(ExternalCollaboratorError) as exc_info:
            await _client(handler).verify_images("prompt", ["AAAA"])

        assert exc_info.value.status_code == 503

    @pytest.mark.asyncio
    async def test_reply_not_matching_contract(self):
        client = _client(lambda request: _reply({"check_number": "1"}))

        with pytest.raises(ExternalCollaboratorError) as exc_info:
            await client.structure_order("text")

        assert exc_info.value.status_code == 502

    @pytest.mark.asyncio
    async def test_reply_without_candidates(self):
        client = _client(lambda request: httpx.Response(200, json={"candidates": []}))

        with pytest.raises(ExternalCollaboratorError):
            await client.verify_images("prompt", ["AAAA"])

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "patch",
        [
            {"items": [{"name": "Burrito", "quantity": 1, "price": float("nan")}]},
            {"total_amount": float("inf")},
            {"items": [{"name": "Burrito", "quantity": 1, "modifiers": [
                {"name": "Extra queso", "price": float("-inf")}
            ]}]},
        ],
    )
    async def test_non_finite_money_is_unusable(self, patch):
        # json.dumps writes bare NaN/Infinity literals, which json.loads accepts
        client = _client(lambda request: _reply({**STRUCTURED, **patch}))

        with pytest.raises(ExternalCollaboratorError) as exc_info:
            await client.structure_order("text")

        assert exc_info.value.status_code == 502
