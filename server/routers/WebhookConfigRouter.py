from typing import Any

from fastapi import APIRouter, Body, Depends, Request
from fastapi.responses import JSONResponse

from server.dependencies.auth import verify_api_key
from server.models.responses import WebhookConfigListResponse, WebhookConfigResponse

router = APIRouter(prefix="/webhooks", tags=["webhook-config"], dependencies=[Depends(verify_api_key)])

CONFIG_STRING_FIELDS = ("endpoint", "secret", "marketplace_id")


def is_valid_webhook_config(config: Any) -> bool:
    """A destination needs string endpoint, secret and marketplace_id fields."""
    return isinstance(config, dict) and all(isinstance(config.get(field), str) for field in CONFIG_STRING_FIELDS)


@router.get("")
async def list_webhooks(request: Request):
    """Return every registered webhook destination."""
    service = request.app.state.webhook_config_service
    try:
        configs = await service.do_list()
    except Exception as e:
        request.app.state.logging.error("Error fetching webhooks: %s", e)
        return JSONResponse(
            content={"success": False, "error": "Failed to fetch webhook configurations"},
            status_code=500,
        )
    return WebhookConfigListResponse(success=True, webhooks=configs).model_dump(mode="json")


@router.post("")
async def save_webhook(request: Request, body: dict = Body(...)):
    """Create or update the destination for a CCC id.

    Body: {"config": {"endpoint", "secret", "marketplace_id"}, "marketplace", "ccc_id"}.
    """
    config = body.get("config")
    marketplace = body.get("marketplace")
    ccc_id = body.get("ccc_id")
    if not config or not marketplace or not ccc_id:
        return JSONResponse(content={"success": False, "error": "Missing required fields"}, status_code=400)
    if not is_valid_webhook_config(config):
        return JSONResponse(content={"success": False, "error": "Invalid webhook configuration"}, status_code=400)

    service = request.app.state.webhook_config_service
    try:
        stored = await service.do_register(
            ccc_id=str(ccc_id),
            marketplace_id=str(marketplace),
            endpoint=config["endpoint"],
            secret=config["secret"],
        )
    except Exception as e:
        request.app.state.logging.error("Error saving webhook: %s", e)
        return JSONResponse(
            content={"success": False, "error": "Failed to save webhook configuration"},
            status_code=500,
        )
    return WebhookConfigResponse(success=True, webhook=stored).model_dump(mode="json")
