from typing import Any

from pydantic import BaseModel

from shared.models.document import DocumentMatch
from shared.models.webhook import WebhookConfig


class ActionResponse(BaseModel):
    success: bool
    error: str | None = None


class QueryResponse(BaseModel):
    docs: list[DocumentMatch]


class AnalyzeImageResponse(BaseModel):
    summary: str
    text: str


class AnalyzeTextResponse(BaseModel):
    success: bool
    analysis: dict[str, Any]
    rawOutput: str


class WebhookAckResponse(BaseModel):
    status: str
    event: str


class WebhookEventAckResponse(BaseModel):
    success: bool
    message: str
    event: str


class WebhookConfigListResponse(BaseModel):
    success: bool
    webhooks: list[WebhookConfig]


class WebhookConfigResponse(BaseModel):
    success: bool
    webhook: WebhookConfig | None = None
