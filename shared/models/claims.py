"""Pydantic models for outbound calls to the claims system."""

from pydantic import BaseModel


class PostInvoiceResult(BaseModel):
    """Outcome of one outbound invoice submission.

    status_code mirrors the remote status; it is None when no response arrived.
    """

    success: bool
    error: str | None = None
    status_code: int | None = None
