"""FastAPI application entry point for invoice_ai_bridge."""

import os
from contextlib import asynccontextmanager
from typing import AsyncGenerator, Callable

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from shared.logging.logging_setup import setup_logging
from shared.helper.HelperConfig import HelperConfig
from shared.clients.ClientInterface import ClientInterface
from shared.clients.ClientManager import ClientManager
from server.core.AnalyzeService import AnalyzeService
from server.core.IndexService import IndexService
from server.core.InvoicePostService import InvoicePostService
from server.core.QueryService import QueryService
from server.core.WebhookConfigService import WebhookConfigService
from server.core.WebhookHandlers import build_ccc_registry, build_event_registry
from server.core.WebhookService import WebhookService
from server.routers.ActionRouter import router as action_router
from server.routers.AnalyzeRouter import router as analyze_router
from server.routers.WebhookConfigRouter import router as webhook_config_router
from server.routers.WebhookRouter import router as webhook_router

logging = setup_logging()
app_version = os.getenv("APP_VERSION", "unknown")


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    # when the app starts
    app.state.logging = logging
    app.state.helper_config = helper_config = HelperConfig(logger=logging)

    # one shared client per backend for the whole process
    db_client = ClientManager(helper_config, "db", default_engine="supabase").get_client()
    embed_client = ClientManager(helper_config, "embed", default_engine="openai").get_client()
    llm_client = ClientManager(helper_config, "llm", default_engine="openai").get_client()
    ocr_client = ClientManager(helper_config, "ocr", default_engine="tesseract").get_client()
    claims_client = ClientManager(helper_config, "claims", default_engine="ccc").get_client()
    clients: list[ClientInterface] = [db_client, embed_client, llm_client, ocr_client, claims_client]

    logging.info("Booting all clients...")
    for client in clients:
        await client.boot()
    logging.info("All clients booted successfully.")

    app.state.index_service = IndexService(
        helper_config=helper_config,
        ocr_client=ocr_client,
        embed_client=embed_client,
        db_client=db_client,
    )
    app.state.query_service = QueryService(
        helper_config=helper_config,
        embed_client=embed_client,
        db_client=db_client,
    )
    app.state.analyze_service = AnalyzeService(
        helper_config=helper_config,
        ocr_client=ocr_client,
        llm_client=llm_client,
        db_client=db_client,
    )
    app.state.invoice_post_service = InvoicePostService(helper_config=helper_config, claims_client=claims_client)
    app.state.webhook_service = WebhookService(
        helper_config=helper_config,
        db_client=db_client,
        ccc_registry=build_ccc_registry(helper_config),
        event_registry=build_event_registry(helper_config),
    )
    app.state.webhook_config_service = WebhookConfigService(helper_config=helper_config, db_client=db_client)

    await check_connections(critical=[db_client, embed_client], optional=[ocr_client, llm_client, claims_client])

    # while the app is running...
    yield

    # when the app shuts down, close all client connections
    logging.info("Shutting down, closing all clients...")
    for client in clients:
        await client.close()
    logging.info("All clients closed.")


async def check_connections(critical: list[ClientInterface], optional: list[ClientInterface]) -> None:
    """Check connectivity to the configured backends on startup.

    Database and embedding failures are fatal, since neither indexing nor
    queries can be served without them. OCR, LLM and claims failures only warn.

    Raises:
        Exception: If a critical backend is not reachable.
    """
    for client in optional:
        try:
            result = await client.do_healthcheck()
        except Exception as e:
            logging.warning("%s client '%s' is not reachable: %s", client.get_client_type().upper(), client.get_engine_name(), e)
            continue
        if not result.is_success:
            logging.warning(
                "%s client '%s' is not reachable (status %d).",
                client.get_client_type().upper(), client.get_engine_name(), result.status_code,
            )

    for client in critical:
        result = await client.do_healthcheck()
        if not result.is_success:
            raise Exception(
                f"{client.get_client_type().upper()} client '{client.get_engine_name()}' is not reachable "
                f"(status {result.status_code}). Cannot serve requests."
            )


async def handle_validation_error(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Answer malformed request bodies with the uniform {success, error} shape."""
    fields = ", ".join(".".join(str(part) for part in error.get("loc", ())[1:]) for error in exc.errors())
    return JSONResponse(
        content={"success": False, "error": f"Invalid request: {fields}" if fields else "Invalid request"},
        status_code=400,
    )


def build_app(app_lifespan: Callable | None = lifespan) -> FastAPI:
    """Create the FastAPI application with all routers attached."""
    api = FastAPI(
        title="invoice_ai_bridge",
        description=(
            "Invoice intake backend: OCR and LLM extraction of invoice images, semantic search "
            "over indexed invoices, CCC webhook ingestion and outbound invoice posting."
        ),
        version=app_version,
        lifespan=app_lifespan,
    )

    api.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    api.add_exception_handler(RequestValidationError, handle_validation_error)

    api.include_router(webhook_router)
    api.include_router(webhook_config_router)
    api.include_router(action_router)
    api.include_router(analyze_router)
    return api


app = build_app()


if __name__ == "__main__":
    import uvicorn

    logging.info(
        "Starting invoice_ai_bridge API Server v%s from root dir: %s on port 8000...",
        app_version,
        os.environ.get("ROOT_DIR", "unknown"),
    )
    uvicorn.run(app, host="0.0.0.0", port=8000)
