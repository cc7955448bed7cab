from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse

from server.dependencies.auth import verify_api_key
from server.models.requests import IndexImageRequest, PostInvoiceRequest, QueryRequest
from server.models.responses import ActionResponse, QueryResponse

router = APIRouter(prefix="/actions", tags=["actions"], dependencies=[Depends(verify_api_key)])


@router.post("/indexImage")
async def index_image(request: Request, body: IndexImageRequest):
    """OCR an invoice image and store it as a searchable document.

    Args:
        request (Request): FastAPI request (provides app.state.index_service).
        body (IndexImageRequest): {"invoiceId", "imageUrl"}.

    Returns:
        dict: {"success": true}, or 500 with {"success": false, "error": ...}.
    """
    index_service = request.app.state.index_service
    try:
        await index_service.do_index_image(body.invoice_id, body.image_url)
    except Exception as e:
        request.app.state.logging.error("Error indexing image %s: %s", body.image_url, e)
        return JSONResponse(
            content=ActionResponse(success=False, error="Failed to index image").model_dump(exclude_none=True),
            status_code=500,
        )
    return ActionResponse(success=True).model_dump(exclude_none=True)


@router.post("/queryRAG")
async def query_rag(request: Request, body: QueryRequest):
    """Return the topK stored documents most similar to the query.

    Args:
        request (Request): FastAPI request (provides app.state.query_service).
        body (QueryRequest): {"query", "topK"} with topK defaulting to 5.

    Returns:
        dict: {"docs": [...]}, or 500 with {"error": ...}.
    """
    query_service = request.app.state.query_service
    try:
        docs = await query_service.do_query(body.query, body.top_k)
    except Exception as e:
        request.app.state.logging.error("Error querying documents: %s", e)
        return JSONResponse(content={"error": "Failed to query documents"}, status_code=500)
    return QueryResponse(docs=docs).model_dump(mode="json", exclude_none=True)


@router.post("/postInvoice")
async def post_invoice(request: Request, body: PostInvoiceRequest):
    """Submit an invoice payload to the claims API.

    A non-2xx answer from the claims API is mirrored as
    {"success": false, "error": "API Error <status>"} with the same status.
    """
    post_service = request.app.state.invoice_post_service
    try:
        result = await post_service.do_post_invoice(body.estimate_id, body.xml)
    except Exception as e:
        request.app.state.logging.error("Error posting invoice for estimate %s: %s", body.estimate_id, e)
        return JSONResponse(
            content=ActionResponse(success=False, error="Failed to post invoice").model_dump(exclude_none=True),
            status_code=500,
        )
    response = ActionResponse(success=result.success, error=result.error).model_dump(exclude_none=True)
    if not result.success:
        return JSONResponse(content=response, status_code=result.status_code or 500)
    return response
