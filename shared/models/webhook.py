"""Pydantic models for webhook ingestion and webhook destinations."""

from datetime import datetime
from enum import Enum
from typing import Any

from pydantic import BaseModel


class WebhookStage(str, Enum):
    """Stages an inbound webhook passes through.

    A successful run records the stages it passed in WebhookResult.trail.
    SIGNATURE_FAILED and PARSE_FAILED are terminal and carried by the raised
    error (AuthenticationError, ParseError, InvalidPayloadError).
    """

    RECEIVED = "received"
    SIGNATURE_VERIFIED = "signature_verified"
    SIGNATURE_FAILED = "signature_failed"
    PARSED = "parsed"
    PARSE_FAILED = "parse_failed"
    PERSISTED = "persisted"
    DISPATCHED = "dispatched"
    ACKNOWLEDGED = "acknowledged"


class WebhookEvent(BaseModel):
    """Audit row for a JSON webhook call (table ``webhook_events``)."""

    id: str | None = None
    source: str
    event_type: str
    payload: Any = None
    processed: bool = False
    received_at: datetime
    processed_at: datetime | None = None


class Invoice(BaseModel):
    """Audit row for a CCC XML webhook call (table ``invoices``).

    user_id comes from the untrusted x-user-id header.
    """

    id: str
    user_id: str | None = None
    ccc_status: str
    raw_payload: str
    created_at: datetime
    updated_at: datetime | None = None


class WebhookConfig(BaseModel):
    """A tenant-configured outbound webhook destination (table ``webhook_configs``).

    ccc_id is the business key; it is unique in storage.
    """

    id: str | None = None
    ccc_id: str
    marketplace_id: str
    endpoint: str
    secret: str
    enabled: bool = True
    metadata: dict[str, Any] = {}


class WebhookResult(BaseModel):
    """Outcome of one ingestion run, returned by WebhookService."""

    stage: WebhookStage
    trail: list[WebhookStage] = []
    event_type: str | None = None
    record_id: str | None = None
    persisted: bool = False
    dispatched: bool = False
