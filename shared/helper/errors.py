"""Error types shared by clients, services and routers."""

from shared.models.webhook import WebhookStage


class InvoiceBridgeError(Exception):
    """Base exception for all invoice bridge failures.

    Attributes:
        stage: Terminal webhook stage the error stands for, if it ends an ingestion.
    """

    stage: WebhookStage | None = None


class AuthenticationError(InvoiceBridgeError):
    """Raised when a webhook signature does not match the raw body."""

    stage = WebhookStage.SIGNATURE_FAILED


class ParseError(InvoiceBridgeError):
    """Raised when an inbound payload cannot be parsed."""

    stage = WebhookStage.PARSE_FAILED


class DependencyError(InvoiceBridgeError):
    """Raised when an external backend (OCR, embedding, database, claims API) fails or times out.

    Attributes:
        status_code: HTTP status returned by the backend, if there was a response.
        body: Response body returned by the backend, if there was a response.
    """

    def __init__(self, message: str, status_code: int | None = None, body: str | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code
        self.body = body


class InvalidPayloadError(InvoiceBridgeError):
    """Raised when a parsed payload lacks required fields or has the wrong shape."""

    stage = WebhookStage.PARSE_FAILED
