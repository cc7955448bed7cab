"""Tests for the embedding, chat and OCR clients against mocked HTTP backends."""

import json

import httpx
import pytest

from shared.clients.embed.openai.EmbedClientOpenai import EmbedClientOpenai
from shared.clients.llm.openai.LLMClientOpenai import LLMClientOpenai
from shared.clients.ocr.tesseract.OCRClientTesseract import OCRClientTesseract
from shared.helper.errors import DependencyError


class TestEmbedClientOpenai:
    @pytest.mark.asyncio
    async def test_embeddings_are_ordered_by_index(self, helper_config, attach_transport):
        client = EmbedClientOpenai(helper_config)
        seen = attach_transport(client, lambda request: httpx.Response(200, json={
            "data": [
                {"index": 1, "embedding": [0.2, 0.2]},
                {"index": 0, "embedding": [0.1, 0.1]},
            ],
        }))

        vectors = await client.do_embed(["first", "second"])

        assert vectors == [[0.1, 0.1], [0.2, 0.2]]
        request = seen[0]
        assert request.method == "POST"
        assert str(request.url) == "https://api.openai.com/v1/embeddings"
        assert request.headers["Authorization"] == "Bearer sk-embed"
        assert json.loads(request.content) == {"model": "text-embedding-ada-002", "input": ["first", "second"]}

    @pytest.mark.asyncio
    async def test_model_comes_from_config(self, helper_config, attach_transport, monkeypatch):
        monkeypatch.setenv("EMBED_MODEL", "text-embedding-3-small")
        client = EmbedClientOpenai(helper_config)
        seen = attach_transport(client, lambda request: httpx.Response(200, json={
            "data": [{"index": 0, "embedding": [1.0, 0.0]}],
        }))

        assert await client.do_embed_text("hello") == [1.0, 0.0]
        assert json.loads(seen[0].content)["model"] == "text-embedding-3-small"

    @pytest.mark.asyncio
    async def test_error_status_raises_dependency_error(self, helper_config, attach_transport):
        client = EmbedClientOpenai(helper_config)
        attach_transport(client, lambda request: httpx.Response(429, text="rate limited"))

        with pytest.raises(DependencyError) as excinfo:
            await client.do_embed_text("hello")
        assert excinfo.value.status_code == 429

    @pytest.mark.asyncio
    async def test_empty_response_raises_dependency_error(self, helper_config, attach_transport):
        client = EmbedClientOpenai(helper_config)
        attach_transport(client, lambda request: httpx.Response(200, json={"data": []}))

        with pytest.raises(DependencyError):
            await client.do_embed_text("hello")

    @pytest.mark.asyncio
    async def test_wrong_vector_size_is_rejected(self, helper_config, attach_transport):
        client = EmbedClientOpenai(helper_config)
        attach_transport(client, lambda request: httpx.Response(200, json={
            "data": [{"index": 0, "embedding": [0.1, 0.2, 0.3]}],
        }))

        with pytest.raises(DependencyError, match="EMBED_DIMENSIONS"):
            await client.do_embed_text("hello")

    @pytest.mark.asyncio
    async def test_timeout_raises_dependency_error(self, helper_config, attach_transport):
        client = EmbedClientOpenai(helper_config)

        def _timeout(request):
            raise httpx.ConnectTimeout("timed out", request=request)

        attach_transport(client, _timeout)
        with pytest.raises(DependencyError, match="timed out"):
            await client.do_embed_text("hello")

    def test_missing_api_key_fails_at_construction(self, helper_config, monkeypatch):
        monkeypatch.delenv("EMBED_OPENAI_API_KEY")
        with pytest.raises(ValueError, match="EMBED_OPENAI_API_KEY"):
            EmbedClientOpenai(helper_config)

    @pytest.mark.asyncio
    async def test_request_before_boot_fails(self, helper_config):
        client = EmbedClientOpenai(helper_config)
        with pytest.raises(Exception, match="boot"):
            await client.do_healthcheck()


class TestLLMClientOpenai:
    @pytest.mark.asyncio
    async def test_chat_returns_first_choice(self, helper_config, attach_transport):
        client = LLMClientOpenai(helper_config)
        seen = attach_transport(client, lambda request: httpx.Response(200, json={
            "choices": [{"message": {"role": "assistant", "content": "Summary"}}],
        }))

        reply = await client.do_chat([{"role": "user", "content": "hi"}], temperature=0.2)

        assert reply == "Summary"
        body = json.loads(seen[0].content)
        assert str(seen[0].url) == "https://api.openai.com/v1/chat/completions"
        assert body["model"] == "gpt-3.5-turbo"
        assert body["temperature"] == 0.2
        assert body["messages"] == [{"role": "user", "content": "hi"}]

    @pytest.mark.asyncio
    async def test_temperature_is_omitted_by_default(self, helper_config, attach_transport):
        client = LLMClientOpenai(helper_config)
        seen = attach_transport(client, lambda request: httpx.Response(200, json={
            "choices": [{"message": {"content": "ok"}}],
        }))

        await client.do_chat([{"role": "user", "content": "hi"}])
        assert "temperature" not in json.loads(seen[0].content)

    @pytest.mark.asyncio
    async def test_error_status_raises_dependency_error(self, helper_config, attach_transport):
        client = LLMClientOpenai(helper_config)
        attach_transport(client, lambda request: httpx.Response(500, text="boom"))

        with pytest.raises(DependencyError) as excinfo:
            await client.do_chat([{"role": "user", "content": "hi"}])
        assert excinfo.value.status_code == 500

    @pytest.mark.asyncio
    async def test_missing_choices_raises_dependency_error(self, helper_config, attach_transport):
        client = LLMClientOpenai(helper_config)
        attach_transport(client, lambda request: httpx.Response(200, json={"choices": []}))

        with pytest.raises(DependencyError):
            await client.do_chat([{"role": "user", "content": "hi"}])


class TestOCRClientTesseract:
    IMAGE_URL = "https://files.test/invoices/inv-1.png"

    @staticmethod
    def backend(ocr_body: dict, image_status: int = 200):
        def _handler(request: httpx.Request) -> httpx.Response:
            if request.url.host == "files.test":
                return httpx.Response(image_status, content=b"\x89PNG", headers={"content-type": "image/png"})
            return httpx.Response(200, json=ocr_body)

        return _handler

    @pytest.mark.asyncio
    async def test_recognize_downloads_then_uploads(self, helper_config, attach_transport):
        client = OCRClientTesseract(helper_config)
        seen = attach_transport(client, self.backend({"data": {"stdout": "Total 42.00", "exit": {"code": 0}}}))

        text = await client.do_recognize(self.IMAGE_URL)

        assert text == "Total 42.00"
        download, upload = seen
        assert str(download.url) == self.IMAGE_URL
        assert "Authorization" not in download.headers
        assert upload.method == "POST"
        assert str(upload.url) == "http://ocr.test/tesseract"
        assert b'name="file"; filename="inv-1.png"' in upload.content
        assert b'"languages": ["eng"]' in upload.content

    @pytest.mark.asyncio
    async def test_language_option_is_split(self, helper_config, attach_transport, monkeypatch):
        monkeypatch.setenv("OCR_LANGUAGE", "deu+eng")
        client = OCRClientTesseract(helper_config)
        seen = attach_transport(client, self.backend({"data": {"stdout": "", "exit": {"code": 0}}}))

        assert await client.do_recognize(self.IMAGE_URL) == ""
        assert b'"languages": ["deu", "eng"]' in seen[1].content

    @pytest.mark.asyncio
    async def test_language_list_key_wins(self, helper_config, attach_transport, monkeypatch):
        monkeypatch.setenv("OCR_LANGUAGE", "deu+eng")
        monkeypatch.setenv("OCR_TESSERACT_LANGUAGES", "[fra, ita]")
        client = OCRClientTesseract(helper_config)
        seen = attach_transport(client, self.backend({"data": {"stdout": "", "exit": {"code": 0}}}))

        await client.do_recognize(self.IMAGE_URL)

        assert b'"languages": ["fra", "ita"]' in seen[1].content

    @pytest.mark.asyncio
    async def test_nonzero_exit_raises_dependency_error(self, helper_config, attach_transport):
        client = OCRClientTesseract(helper_config)
        attach_transport(client, self.backend({"data": {"stderr": "bad image", "exit": {"code": 1}}}))

        with pytest.raises(DependencyError, match="exited with code 1"):
            await client.do_recognize(self.IMAGE_URL)

    @pytest.mark.asyncio
    async def test_failed_download_raises_dependency_error(self, helper_config, attach_transport):
        client = OCRClientTesseract(helper_config)
        seen = attach_transport(client, self.backend({}, image_status=404))

        with pytest.raises(DependencyError) as excinfo:
            await client.do_recognize(self.IMAGE_URL)
        assert excinfo.value.status_code == 404
        assert len(seen) == 1
