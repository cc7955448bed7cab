"""Tests for engine selection of backend clients."""

import pytest

from shared.clients.ClientManager import ClientManager
from shared.clients.claims.ccc.ClaimsClientCcc import ClaimsClientCcc
from shared.clients.db.supabase.DBClientSupabase import DBClientSupabase
from shared.clients.embed.openai.EmbedClientOpenai import EmbedClientOpenai
from shared.clients.llm.openai.LLMClientOpenai import LLMClientOpenai
from shared.clients.ocr.tesseract.OCRClientTesseract import OCRClientTesseract


class TestClientManager:
    @pytest.mark.parametrize(
        "client_type, engine, expected",
        [
            ("db", "supabase", DBClientSupabase),
            ("embed", "openai", EmbedClientOpenai),
            ("llm", "openai", LLMClientOpenai),
            ("ocr", "tesseract", OCRClientTesseract),
            ("claims", "ccc", ClaimsClientCcc),
        ],
    )
    def test_default_engines(self, helper_config, client_type, engine, expected):
        client = ClientManager(helper_config, client_type, default_engine=engine).get_client()
        assert isinstance(client, expected)
        assert client.get_client_type() == client_type
        assert client.get_engine_name() == engine

    def test_engine_from_environment(self, helper_config, monkeypatch):
        monkeypatch.setenv("DB_ENGINE", "Supabase")
        client = ClientManager(helper_config, "db").get_client()
        assert isinstance(client, DBClientSupabase)

    def test_unsupported_engine(self, helper_config, monkeypatch):
        monkeypatch.setenv("EMBED_ENGINE", "nonexistent")
        with pytest.raises(ValueError, match="Unsupported EMBED engine"):
            ClientManager(helper_config, "embed", default_engine="openai")

    def test_unknown_client_type(self, helper_config):
        with pytest.raises(ValueError, match="Unknown client type"):
            ClientManager(helper_config, "queue", default_engine="x")

    def test_missing_engine(self, helper_config, monkeypatch):
        monkeypatch.delenv("OCR_ENGINE", raising=False)
        with pytest.raises(ValueError):
            ClientManager(helper_config, "ocr")
