"""Shared fixtures: a complete test environment and mock HTTP transports."""

import logging
import os
import tempfile
from typing import Callable

import httpx
import pytest

# logs of the app module land in a throwaway directory
os.environ.setdefault("ROOT_DIR", tempfile.mkdtemp(prefix="invoice_ai_bridge_"))

from shared.helper.HelperConfig import HelperConfig  # noqa: E402
from shared.logging.logging_setup import ColorLogger  # noqa: E402

TEST_ENV = {
    "APP_API_KEY": "test-api-key",
    "CCC_WEBHOOK_SECRET": "s3cret",
    "DB_SUPABASE_BASE_URL": "https://db.test",
    "DB_SUPABASE_API_KEY": "service-key",
    "EMBED_OPENAI_API_KEY": "sk-embed",
    "EMBED_DIMENSIONS": "2",
    "LLM_OPENAI_API_KEY": "sk-llm",
    "OCR_TESSERACT_BASE_URL": "http://ocr.test",
    "CLAIMS_CCC_SANDBOX_BASE_URL": "https://sandbox.ccc.test",
    "CLAIMS_CCC_SANDBOX_TOKEN": "sandbox-token",
    "CLAIMS_CCC_PROD_BASE_URL": "https://api.ccc.test",
    "CLAIMS_CCC_PROD_TOKEN": "prod-token",
}


@pytest.fixture(autouse=True)
def test_env(monkeypatch):
    for key, value in TEST_ENV.items():
        monkeypatch.setenv(key, value)
    for key in ("CLAIMS_CCC_PRODUCTION", "EMBED_MODEL", "LLM_CHAT_MODEL", "OCR_LANGUAGE", "OCR_TESSERACT_LANGUAGES"):
        monkeypatch.delenv(key, raising=False)
    return TEST_ENV


@pytest.fixture
def helper_config() -> HelperConfig:
    return HelperConfig(logger=ColorLogger(logging.getLogger("invoice_ai_bridge.tests")))


@pytest.fixture
def attach_transport() -> Callable:
    """Return a function that routes a client's requests to a handler.

    The handler receives each httpx.Request and returns an httpx.Response.
    Every request is recorded in the returned list.
    """

    def _attach(client, handler: Callable[[httpx.Request], httpx.Response]) -> list[httpx.Request]:
        seen: list[httpx.Request] = []

        def _record(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            return handler(request)

        client._client = httpx.AsyncClient(transport=httpx.MockTransport(_record))
        return seen

    return _attach
