"""Indexing service: OCR an invoice image, embed the text, upsert one Document.

Re-indexing the same (invoice_id, image_url) pair overwrites the stored
document; nothing is written when OCR or embedding fails.
"""

from datetime import datetime, timezone

from shared.clients.db.DBClientInterface import DBClientInterface
from shared.clients.embed.EmbedClientInterface import EmbedClientInterface
from shared.clients.ocr.OCRClientInterface import OCRClientInterface
from shared.helper.HelperConfig import HelperConfig
from shared.models.document import Document


def make_document_id(invoice_id: str, image_url: str) -> str:
    """Build the document id shared by every indexing run of one invoice image."""
    return f"{invoice_id}::{image_url}"


class IndexService:
    """Orchestrates OCR, embedding and vector store upsert for invoice images."""

    def __init__(
        self,
        helper_config: HelperConfig,
        ocr_client: OCRClientInterface,
        embed_client: EmbedClientInterface,
        db_client: DBClientInterface,
    ) -> None:
        self.logging = helper_config.get_logger()
        self._ocr = ocr_client
        self._embed = embed_client
        self._db = db_client

    ##########################################
    ################ CORE ####################
    ##########################################

    async def do_index_image(self, invoice_id: str, image_url: str) -> Document:
        """Index one invoice image.

        Args:
            invoice_id (str): Identifier of the invoice the image belongs to.
            image_url (str): Location of the image.

        Returns:
            Document: The document as upserted.

        Raises:
            DependencyError: If OCR, embedding or the upsert fails.
        """
        self.logging.info("Indexing image for invoice %s: %s", invoice_id, image_url)

        text = await self._ocr.do_recognize(image_url)
        vector = await self._embed.do_embed_text(text)

        document = Document(
            id=make_document_id(invoice_id, image_url),
            content=text,
            metadata={
                "invoiceId": invoice_id,
                "imageUrl": image_url,
                "indexed_at": datetime.now(timezone.utc).isoformat(),
            },
            embedding=vector,
        )
        await self._db.do_upsert_document(document)

        self.logging.info(
            "Indexed document %s (%d characters, %d dimensions).",
            document.id, len(text), len(vector),
        )
        return document
