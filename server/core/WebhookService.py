"""Webhook ingestion: verify, parse, persist, dispatch.

Two inbound flows share the pipeline:
  CCC XML: the event type is the root element name, the audit row is an Invoice.
  JSON:    the event type is the "event" field, the audit row is a WebhookEvent.

The signature is checked over the raw body before anything is parsed.
Persisting the audit row is best-effort: a storage failure is logged and the
request is still acknowledged. Dispatch failures are logged the same way.
"""

import json
import uuid
from datetime import datetime, timezone
from typing import Any, Awaitable

from server.core.WebhookHandlers import WebhookHandlerRegistry
from shared.clients.db.DBClientInterface import DBClientInterface
from shared.helper.HelperConfig import HelperConfig
from shared.helper.HelperSignature import verify_signature
from shared.helper.HelperXml import declared_encoding, find_path, first_text, parse_xml
from shared.helper.errors import AuthenticationError, InvalidPayloadError, ParseError
from shared.models.webhook import Invoice, WebhookEvent, WebhookResult, WebhookStage


class WebhookService:
    """Runs the ingestion state machine for inbound webhooks."""

    REQUIRED_EVENT_FIELDS = ("event", "data", "source")

    def __init__(
        self,
        helper_config: HelperConfig,
        db_client: DBClientInterface,
        ccc_registry: WebhookHandlerRegistry,
        event_registry: WebhookHandlerRegistry,
    ) -> None:
        self.logging = helper_config.get_logger()
        self._secret = helper_config.get_string_val("CCC_WEBHOOK_SECRET")
        self._db = db_client
        self._ccc_registry = ccc_registry
        self._event_registry = event_registry

    ##########################################
    ################ CORE ####################
    ##########################################

    async def do_ingest_ccc(self, raw_body: bytes, signature: str | None, user_id: str | None = None) -> WebhookResult:
        """Ingest a signed CCC XML webhook.

        Args:
            raw_body (bytes): The body exactly as received.
            signature (str | None): Value of the x-ccc-signature header.
            user_id (str | None): Value of the x-user-id header (untrusted).

        Returns:
            WebhookResult: Acknowledged result carrying the event type.

        Raises:
            AuthenticationError: If the signature does not match.
            ParseError: If the body is not well-formed XML.
        """
        trail = [WebhookStage.RECEIVED]
        self.verify(raw_body, signature)
        trail.append(WebhookStage.SIGNATURE_VERIFIED)

        try:
            parsed = parse_xml(raw_body)
        except ParseError as e:
            self.logging.warning("CCC webhook stopped at %s: %s", e.stage.value, e)
            raise
        trail.append(WebhookStage.PARSED)
        event_type = next(iter(parsed))
        root = parsed[event_type]
        self.logging.debug("CCC webhook parsed: %s", event_type)

        record_id = first_text(find_path(root, "DocumentInfo", "DocumentID")) or str(uuid.uuid4())
        invoice = Invoice(
            id=record_id,
            user_id=user_id or None,
            ccc_status=event_type,
            raw_payload=self._decode_payload(raw_body),
            created_at=datetime.now(timezone.utc),
        )
        persisted = await self._persist(self._db.do_insert_invoice(invoice), f"invoice {record_id}") is not False
        if persisted:
            trail.append(WebhookStage.PERSISTED)

        dispatched = await self._dispatch(self._ccc_registry, event_type, root)
        if dispatched:
            trail.append(WebhookStage.DISPATCHED)
        trail.append(WebhookStage.ACKNOWLEDGED)

        self.logging.info(
            "CCC webhook acknowledged: event=%s id=%s persisted=%s dispatched=%s",
            event_type, record_id, persisted, dispatched,
            color="green",
        )
        return WebhookResult(
            stage=WebhookStage.ACKNOWLEDGED,
            trail=trail,
            event_type=event_type,
            record_id=record_id,
            persisted=persisted,
            dispatched=dispatched,
        )

    async def do_ingest_event(self, raw_body: bytes, signature: str | None) -> WebhookResult:
        """Ingest a signed JSON webhook of the form {"event", "data", "source"}.

        The stored event is marked processed once its handler has run.

        Raises:
            AuthenticationError: If the signature does not match.
            ParseError: If the body is not valid JSON.
            InvalidPayloadError: If event, data or source is missing.
        """
        trail = [WebhookStage.RECEIVED]
        self.verify(raw_body, signature)
        trail.append(WebhookStage.SIGNATURE_VERIFIED)
        body = self._parse_json(raw_body)

        missing = [field for field in self.REQUIRED_EVENT_FIELDS if self._is_blank(body.get(field))]
        if missing:
            raise InvalidPayloadError(f"Missing required fields: {', '.join(missing)}")
        trail.append(WebhookStage.PARSED)
        event_type = str(body["event"])

        event = WebhookEvent(
            source=str(body["source"]),
            event_type=event_type,
            payload=body["data"],
            processed=False,
            received_at=datetime.now(timezone.utc),
        )
        stored = await self._persist(self._db.do_insert_webhook_event(event), f"{event_type} event")
        if stored is not False:
            trail.append(WebhookStage.PERSISTED)

        dispatched = await self._dispatch(self._event_registry, event_type, body["data"])
        if dispatched:
            trail.append(WebhookStage.DISPATCHED)

        if dispatched and isinstance(stored, WebhookEvent) and stored.id:
            await self._persist(
                self._db.do_mark_webhook_event_processed(stored.id, datetime.now(timezone.utc)),
                f"processed flag of event {stored.id}",
            )
        trail.append(WebhookStage.ACKNOWLEDGED)

        return WebhookResult(
            stage=WebhookStage.ACKNOWLEDGED,
            trail=trail,
            event_type=event_type,
            record_id=stored.id if isinstance(stored, WebhookEvent) else None,
            persisted=stored is not False,
            dispatched=dispatched,
        )

    def verify(self, raw_body: bytes, signature: str | None) -> None:
        """Check the HMAC-SHA256 signature of the raw body.

        Raises:
            AuthenticationError: If the signature is missing or does not match.
        """
        if not verify_signature(self._secret, raw_body, signature):
            self.logging.warning("Rejected webhook with invalid signature (%d bytes).", len(raw_body))
            raise AuthenticationError("Invalid signature")

    ##########################################
    ############### HELPERS ##################
    ##########################################

    @staticmethod
    def _is_blank(value: Any) -> bool:
        """None, "", False and 0 count as missing; empty objects and arrays do not."""
        if isinstance(value, (dict, list)):
            return False
        return not value

    def _decode_payload(self, raw_body: bytes) -> str:
        """Text of the raw body for the audit row, in the encoding its XML declaration names."""
        encoding = declared_encoding(raw_body) or "utf-8"
        try:
            return raw_body.decode(encoding)
        except (LookupError, UnicodeDecodeError) as e:
            self.logging.warning("CCC payload does not decode as %s (%s); stored with replacement characters.", encoding, e)
            return raw_body.decode("utf-8", errors="replace")

    def _parse_json(self, raw_body: bytes) -> dict:
        try:
            body = json.loads(raw_body)
        except (json.JSONDecodeError, UnicodeDecodeError) as e:
            raise ParseError(f"Malformed JSON payload: {e}") from e
        if not isinstance(body, dict):
            raise InvalidPayloadError("Webhook body must be a JSON object.")
        return body

    async def _persist(self, operation: Awaitable[Any], label: str) -> Any:
        """Await a storage write; on failure log it and return False."""
        try:
            return await operation
        except Exception as e:
            self.logging.error("Failed to persist %s: %s", label, e)
            return False

    async def _dispatch(self, registry: WebhookHandlerRegistry, event_type: str, payload: Any) -> bool:
        """Dispatch to the registered handler; handler errors are logged, not raised."""
        try:
            return await registry.dispatch(event_type, payload)
        except Exception as e:
            self.logging.error("Webhook handler for '%s' failed: %s", event_type, e)
            return False
