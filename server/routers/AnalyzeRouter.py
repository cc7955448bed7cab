from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse

from server.dependencies.auth import verify_api_key
from server.models.requests import AnalyzeImageRequest, AnalyzeTextRequest
from server.models.responses import AnalyzeImageResponse, AnalyzeTextResponse

router = APIRouter(tags=["analyze"], dependencies=[Depends(verify_api_key)])


@router.post("/actions/analyze")
async def analyze_image(request: Request, body: AnalyzeImageRequest):
    """OCR an image and return a compliance summary with the raw text."""
    analyze_service = request.app.state.analyze_service
    try:
        summary, text = await analyze_service.do_summarize_image(body.url)
    except Exception as e:
        request.app.state.logging.error("Error analyzing image %s: %s", body.url, e)
        return JSONResponse(content={"error": "Failed to analyze image"}, status_code=500)
    return AnalyzeImageResponse(summary=summary, text=text).model_dump()


@router.post("/analyze")
async def analyze_text(request: Request, body: AnalyzeTextRequest):
    """Extract structured invoice fields from OCR text.

    Returns:
        dict: {"success": true, "analysis": {...}, "rawOutput": "..."}; 400 if
        ocrText is missing, 500 if the model call fails.
    """
    if not body.ocr_text:
        return JSONResponse(content={"success": False, "error": "OCR text is required"}, status_code=400)

    analyze_service = request.app.state.analyze_service
    try:
        analysis, raw_output = await analyze_service.do_extract_fields(body.ocr_text, body.image_id)
    except Exception as e:
        request.app.state.logging.error("Error analyzing invoice: %s", e)
        return JSONResponse(content={"success": False, "error": "Failed to analyze invoice"}, status_code=500)
    return AnalyzeTextResponse(success=True, analysis=analysis, rawOutput=raw_output).model_dump()
