from fastapi import APIRouter, Header, Request
from fastapi.responses import JSONResponse, PlainTextResponse

from server.models.responses import WebhookAckResponse, WebhookEventAckResponse
from shared.helper.errors import AuthenticationError, InvalidPayloadError

router = APIRouter(prefix="/webhooks", tags=["webhooks"])


@router.post("/ccc")
async def webhook_ccc(
    request: Request,
    x_ccc_signature: str | None = Header(default=None),
    x_user_id: str | None = Header(default=None),
):
    """Accept a signed CCC XML webhook.

    The raw body is read before anything else so the signature covers the
    exact bytes received.

    Args:
        request (Request): FastAPI request (provides app.state.webhook_service).
        x_ccc_signature (str | None): Hex HMAC-SHA256 of the raw body.
        x_user_id (str | None): Caller-supplied user id, stored as-is.

    Returns:
        dict: {"status": "ok", "event": <root element name>}; 401 on a bad
        signature, 500 if the body cannot be processed.
    """
    raw = await request.body()
    webhook_service = request.app.state.webhook_service
    try:
        result = await webhook_service.do_ingest_ccc(raw, x_ccc_signature, x_user_id)
    except AuthenticationError:
        return PlainTextResponse("Invalid signature", status_code=401)
    except Exception as e:
        request.app.state.logging.error("Error processing CCC webhook: %s", e)
        return JSONResponse(content={"error": "Failed to process webhook"}, status_code=500)
    return WebhookAckResponse(status="ok", event=result.event_type).model_dump()


@router.put("")
async def webhook_event(
    request: Request,
    x_ccc_signature: str | None = Header(default=None),
):
    """Accept a signed JSON webhook {"event", "data", "source"} from CCC or SecureShare.

    Returns:
        dict: {"success": true, "message": ..., "event": ...}; 401 on a bad
        signature, 400 if required fields are missing, 500 otherwise.
    """
    raw = await request.body()
    webhook_service = request.app.state.webhook_service
    try:
        result = await webhook_service.do_ingest_event(raw, x_ccc_signature)
    except AuthenticationError:
        return JSONResponse(content={"success": False, "error": "Invalid signature"}, status_code=401)
    except InvalidPayloadError as e:
        request.app.state.logging.warning("Rejected webhook event at %s: %s", e.stage.value, e)
        return JSONResponse(content={"success": False, "error": "Missing required fields"}, status_code=400)
    except Exception as e:
        request.app.state.logging.error("Error processing webhook: %s", e)
        return JSONResponse(content={"success": False, "error": "Failed to process webhook"}, status_code=500)
    return WebhookEventAckResponse(
        success=True, message="Webhook received and processed", event=result.event_type
    ).model_dump()
