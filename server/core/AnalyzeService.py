"""Analysis service: LLM extraction of invoice fields from OCR text."""

import json
import re
import time
from typing import Any

from shared.clients.db.DBClientInterface import DBClientInterface
from shared.clients.llm.LLMClientInterface import LLMClientInterface, system_message, user_message
from shared.clients.ocr.OCRClientInterface import OCRClientInterface
from shared.helper.HelperConfig import HelperConfig
from shared.models.document import Document

SUMMARY_SYSTEM_PROMPT = (
    "Summarize invoice fields and identify compliance issues. Extract total amount, date, "
    "vendor, service details, and any potential compliance concerns."
)

EXTRACTION_SYSTEM_PROMPT = (
    "You are an invoice analysis assistant. Extract structured information from invoice OCR text."
)

EXTRACTION_PROMPT_TEMPLATE = """
Extract the following information from this invoice OCR text:
- Invoice Date
- Invoice Number
- Total Amount
- Vendor/Company Name
- Line Items with quantities and prices if available

OCR Text:
{ocr_text}

Format the output as JSON with these keys: date, invoiceNumber, totalAmount, vendor, lineItems
"""

_CODE_FENCE = re.compile(r"```json|```")


def parse_analysis(reply: str) -> dict[str, Any]:
    """Decode the model reply as JSON, ignoring markdown code fences.

    Replies that are not a JSON object come back as {"rawText": reply}.
    """
    try:
        analysis = json.loads(_CODE_FENCE.sub("", reply).strip())
    except json.JSONDecodeError:
        return {"rawText": reply}
    return analysis if isinstance(analysis, dict) else {"rawText": reply}


class AnalyzeService:
    """Runs OCR + chat completion to summarise or extract invoice fields."""

    def __init__(
        self,
        helper_config: HelperConfig,
        ocr_client: OCRClientInterface,
        llm_client: LLMClientInterface,
        db_client: DBClientInterface,
    ) -> None:
        self.logging = helper_config.get_logger()
        self._ocr = ocr_client
        self._llm = llm_client
        self._db = db_client

    ##########################################
    ################ CORE ####################
    ##########################################

    async def do_summarize_image(self, image_url: str) -> tuple[str, str]:
        """OCR an image and ask the model for a compliance summary.

        Returns:
            tuple[str, str]: (summary, OCR text)

        Raises:
            DependencyError: If OCR or the chat request fails.
        """
        text = await self._ocr.do_recognize(image_url)
        summary = await self._llm.do_chat([system_message(SUMMARY_SYSTEM_PROMPT), user_message(text)])
        return summary, text

    async def do_extract_fields(self, ocr_text: str, image_id: str | None = None) -> tuple[dict[str, Any], str]:
        """Extract structured invoice fields from OCR text.

        When image_id is given the text and analysis are stored as a Document;
        a storage failure is logged and does not fail the analysis.

        Returns:
            tuple[dict, str]: (analysis, raw model reply)

        Raises:
            DependencyError: If the chat request fails.
        """
        reply = await self._llm.do_chat(
            [
                system_message(EXTRACTION_SYSTEM_PROMPT),
                user_message(EXTRACTION_PROMPT_TEMPLATE.format(ocr_text=ocr_text)),
            ],
            temperature=0.2,
        )
        analysis = parse_analysis(reply)
        if "rawText" in analysis and len(analysis) == 1:
            self.logging.warning("Model reply is not valid JSON; keeping raw text.")

        if image_id:
            document = Document(
                id=f"doc_{int(time.time() * 1000)}",
                content=ocr_text,
                metadata={"invoiceId": image_id, "analysis": analysis},
            )
            try:
                await self._db.do_insert_document(document)
            except Exception as e:
                self.logging.error("Error saving analysis document %s: %s", document.id, e)

        return analysis, reply
