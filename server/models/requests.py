from pydantic import BaseModel, ConfigDict, Field


class CamelModel(BaseModel):
    """Accepts both the camelCase wire names and the snake_case field names."""

    model_config = ConfigDict(populate_by_name=True)


class IndexImageRequest(CamelModel):
    invoice_id: str = Field(alias="invoiceId", min_length=1)
    image_url: str = Field(alias="imageUrl", min_length=1)


class QueryRequest(CamelModel):
    query: str
    top_k: int = Field(default=5, alias="topK", ge=1)


class PostInvoiceRequest(CamelModel):
    estimate_id: str = Field(alias="estimateId", min_length=1)
    xml: str


class AnalyzeImageRequest(CamelModel):
    url: str = Field(min_length=1)


class AnalyzeTextRequest(CamelModel):
    ocr_text: str | None = Field(default=None, alias="ocrText")
    image_id: str | None = Field(default=None, alias="imageId")
