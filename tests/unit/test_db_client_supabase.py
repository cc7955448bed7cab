"""Tests for the Supabase (PostgREST) storage client."""

import json
from datetime import datetime, timezone

import httpx
import pytest

from shared.clients.db.supabase.DBClientSupabase import DBClientSupabase
from shared.helper.errors import DependencyError
from shared.models.document import Document
from shared.models.webhook import Invoice, WebhookConfig, WebhookEvent


def respond(status: int = 201, body=None):
    return lambda request: httpx.Response(status, json=body if body is not None else [])


class TestDBClientSupabase:
    @pytest.mark.asyncio
    async def test_upsert_document_merges_duplicates(self, helper_config, attach_transport):
        client = DBClientSupabase(helper_config)
        seen = attach_transport(client, respond())

        await client.do_upsert_document(Document(id="INV-1::u", content="text", metadata={"a": 1}, embedding=[0.1]))

        request = seen[0]
        assert request.method == "POST"
        assert str(request.url) == "https://db.test/rest/v1/documents"
        assert request.headers["apikey"] == "service-key"
        assert request.headers["Authorization"] == "Bearer service-key"
        assert request.headers["Prefer"] == "resolution=merge-duplicates,return=representation"
        assert json.loads(request.content) == [
            {"id": "INV-1::u", "content": "text", "metadata": {"a": 1}, "embedding": [0.1]}
        ]

    @pytest.mark.asyncio
    async def test_insert_document_is_a_plain_insert(self, helper_config, attach_transport):
        client = DBClientSupabase(helper_config)
        seen = attach_transport(client, respond())

        await client.do_insert_document(Document(id="doc_1", content="text"))

        assert seen[0].headers["Prefer"] == "return=representation"
        assert json.loads(seen[0].content) == [{"id": "doc_1", "content": "text", "metadata": {}}]

    @pytest.mark.asyncio
    async def test_match_documents_calls_ranking_function(self, helper_config, attach_transport):
        client = DBClientSupabase(helper_config)
        seen = attach_transport(client, respond(200, [
            {"id": "a", "content": "x", "metadata": {"invoiceId": "1"}, "similarity": 0.91, "embedding": "[0.1]"},
            {"id": "b", "content": "y", "metadata": {}, "similarity": 0.5},
        ]))

        matches = await client.do_match_documents([0.1, 0.2], 3)

        assert str(seen[0].url) == "https://db.test/rest/v1/rpc/match_documents"
        assert json.loads(seen[0].content) == {"query_embedding": [0.1, 0.2], "match_count": 3}
        assert [m.id for m in matches] == ["a", "b"]
        assert matches[0].similarity == 0.91
        assert matches[0].embedding is None

    @pytest.mark.asyncio
    async def test_match_with_null_metadata_is_kept(self, helper_config, attach_transport):
        client = DBClientSupabase(helper_config)
        attach_transport(client, respond(200, [
            {"id": "a", "content": "x", "metadata": None, "similarity": 0.9},
            {"id": "b", "content": "y", "metadata": {"invoiceId": "2"}, "similarity": 0.4},
        ]))

        matches = await client.do_match_documents([0.1, 0.2], 2)

        assert [m.id for m in matches] == ["a", "b"]
        assert matches[0].metadata == {}
        assert matches[1].metadata == {"invoiceId": "2"}

    @pytest.mark.asyncio
    async def test_insert_invoice(self, helper_config, attach_transport):
        client = DBClientSupabase(helper_config)
        seen = attach_transport(client, respond())

        await client.do_insert_invoice(Invoice(
            id="EST-1",
            ccc_status="VehicleDamageEstimateAddInvoiceRq",
            raw_payload="<A/>",
            created_at=datetime(2026, 1, 1, tzinfo=timezone.utc),
        ))

        row = json.loads(seen[0].content)[0]
        assert str(seen[0].url) == "https://db.test/rest/v1/invoices"
        assert row["id"] == "EST-1"
        assert "user_id" not in row

    @pytest.mark.asyncio
    async def test_insert_webhook_event_returns_generated_id(self, helper_config, attach_transport):
        client = DBClientSupabase(helper_config)
        stored_row = {
            "id": "5b1c",
            "source": "ccc",
            "event_type": "invoice.created",
            "payload": {"id": 1},
            "processed": False,
            "received_at": "2026-01-01T00:00:00+00:00",
            "processed_at": None,
        }
        seen = attach_transport(client, respond(201, [stored_row]))

        stored = await client.do_insert_webhook_event(WebhookEvent(
            source="ccc",
            event_type="invoice.created",
            payload={"id": 1},
            received_at=datetime(2026, 1, 1, tzinfo=timezone.utc),
        ))

        assert stored.id == "5b1c"
        assert "id" not in json.loads(seen[0].content)[0]

    @pytest.mark.asyncio
    async def test_mark_processed_patches_one_row(self, helper_config, attach_transport):
        client = DBClientSupabase(helper_config)
        seen = attach_transport(client, respond(200))

        await client.do_mark_webhook_event_processed("5b1c", datetime(2026, 1, 1, tzinfo=timezone.utc))

        request = seen[0]
        assert request.method == "PATCH"
        assert request.url.params["id"] == "eq.5b1c"
        assert json.loads(request.content) == {"processed": True, "processed_at": "2026-01-01T00:00:00+00:00"}

    @pytest.mark.asyncio
    async def test_update_without_filter_is_refused(self, helper_config, attach_transport):
        client = DBClientSupabase(helper_config)
        seen = attach_transport(client, respond(200))

        with pytest.raises(ValueError):
            await client.do_update_rows("webhook_events", {}, {"processed": True})
        assert seen == []

    @pytest.mark.asyncio
    async def test_webhook_config_upsert_uses_ccc_id(self, helper_config, attach_transport):
        client = DBClientSupabase(helper_config)
        seen = attach_transport(client, lambda request: httpx.Response(201, json=[
            {"id": "cfg-1", **json.loads(request.content)[0]},
        ]))

        stored = await client.do_upsert_webhook_config(WebhookConfig(
            ccc_id="CCC-1", marketplace_id="mp-1", endpoint="https://hooks.test/x", secret="shh",
        ))

        assert seen[0].url.params["on_conflict"] == "ccc_id"
        assert seen[0].headers["Prefer"].startswith("resolution=merge-duplicates")
        assert stored.id == "cfg-1"
        assert stored.ccc_id == "CCC-1"

    @pytest.mark.asyncio
    async def test_fetch_webhook_configs(self, helper_config, attach_transport):
        client = DBClientSupabase(helper_config)
        seen = attach_transport(client, respond(200, [
            {"id": "cfg-1", "ccc_id": "CCC-1", "marketplace_id": "mp-1", "endpoint": "e", "secret": "s",
             "enabled": True, "metadata": {}, "created_at": "2026-01-01T00:00:00+00:00"},
        ]))

        configs = await client.do_fetch_webhook_configs()

        assert seen[0].method == "GET"
        assert [c.ccc_id for c in configs] == ["CCC-1"]

    def test_filters_are_encoded_as_equality(self, helper_config):
        client = DBClientSupabase(helper_config)
        assert client.get_filter_params({"processed": False, "id": 7}) == {"processed": "eq.false", "id": "eq.7"}
        assert client.get_filter_params(None) == {}

    @pytest.mark.asyncio
    async def test_rejected_write_raises_dependency_error(self, helper_config, attach_transport):
        client = DBClientSupabase(helper_config)
        attach_transport(client, lambda request: httpx.Response(409, json={"message": "duplicate key"}))

        with pytest.raises(DependencyError) as excinfo:
            await client.do_insert_document(Document(id="doc_1", content="text"))
        assert excinfo.value.status_code == 409
        assert "duplicate key" in excinfo.value.body
