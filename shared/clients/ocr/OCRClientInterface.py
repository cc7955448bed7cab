from abc import abstractmethod
from urllib.parse import urlparse
import os

from shared.clients.ClientInterface import ClientInterface
from shared.helper.HelperConfig import HelperConfig
from shared.helper.errors import DependencyError


class OCRClientInterface(ClientInterface):
    def __init__(self, helper_config: HelperConfig):
        super().__init__(helper_config=helper_config)

        # recognition config
        self.ocr_language = helper_config.get_string_val(f"{self.get_client_type().upper()}_LANGUAGE", default="eng")

    ##########################################
    ################ GETTER ##################
    ##########################################

    ################ GENERAL ##################
    def _get_client_type(self) -> str:
        return "ocr"

    ################ ENDPOINTS ##################
    @abstractmethod
    def _get_endpoint_recognize(self) -> str:
        """
        Returns the endpoint path for recognition requests (e.g. "/tesseract").
        """
        pass

    ################ PAYLOAD BUILDER ##################
    @abstractmethod
    def get_recognize_payload(self, image: bytes, file_name: str, content_type: str) -> tuple[dict, dict]:
        """Build the multipart body for a recognition request.

        Args:
            image (bytes): The raw image bytes.
            file_name (str): File name reported to the backend.
            content_type (str): MIME type of the image.

        Returns:
            tuple[dict, dict]: (form data, files) as accepted by httpx.
        """
        pass

    ##########################################
    ################# OTHER ##################
    ##########################################

    @abstractmethod
    def extract_text_from_response(self, response_data: dict) -> str:
        """Extract the recognised plain text from a raw recognition response.

        Raises:
            ValueError: If the backend reports a failure or no text field.
        """
        pass

    ##########################################
    ############### REQUESTS #################
    ##########################################

    async def do_fetch_image(self, image_url: str) -> tuple[bytes, str, str]:
        """Download an image from an absolute URL (e.g. a storage bucket link).

        Returns:
            tuple[bytes, str, str]: (image bytes, file name, content type)

        Raises:
            DependencyError: If the image cannot be downloaded.
        """
        response = await self.do_request(method="GET", url=image_url, raise_on_error=True)
        file_name = os.path.basename(urlparse(image_url).path) or "image"
        content_type = response.headers.get("content-type", "application/octet-stream").split(";")[0]
        return response.content, file_name, content_type

    async def do_recognize(self, image_url: str) -> str:
        """Run OCR on the image behind image_url and return its text.

        Raises:
            DependencyError: If the download or the recognition fails.
        """
        image, file_name, content_type = await self.do_fetch_image(image_url)
        data, files = self.get_recognize_payload(image, file_name, content_type)
        response = await self.do_request(
            method="POST",
            endpoint=self._get_endpoint_recognize(),
            data=data,
            files=files,
            raise_on_error=True,
        )
        try:
            text = self.extract_text_from_response(response.json())
        except ValueError as e:
            raise DependencyError(f"OCR failed for {image_url}: {e}") from e
        self.logging.debug("OCR produced %d characters for %s", len(text), image_url)
        return text
