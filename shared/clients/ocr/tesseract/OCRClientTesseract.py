import json

from shared.clients.ocr.OCRClientInterface import OCRClientInterface
from shared.helper.HelperConfig import HelperConfig
from shared.models.config import EnvConfig


class OCRClientTesseract(OCRClientInterface):
    """Client for a tesseract-server instance (POST /tesseract with a multipart file)."""

    def __init__(self, helper_config: HelperConfig):
        super().__init__(helper_config=helper_config)
        self._base_url = self.config["BASE_URL"]
        self._api_key = self.config["API_KEY"]

    ##########################################
    ################ GETTER ##################
    ##########################################

    ################ GENERAL ##################
    def _get_engine_name(self) -> str:
        return "Tesseract"

    ################ CONFIG ##################
    def _get_required_config(self) -> list[EnvConfig]:
        return [
            EnvConfig(env_key="BASE_URL", val_type="string", default=None),
            EnvConfig(env_key="API_KEY", val_type="string", default=""),
            EnvConfig(env_key="LANGUAGES", val_type="list", default=[]),
        ]

    ################ AUTH ##################
    def _get_auth_header(self) -> dict:
        if self._api_key:
            return {"Authorization": f"Bearer {self._api_key}"}
        return {}

    ################ ENDPOINTS ##################
    def _get_base_url(self) -> str:
        return self._base_url

    def _get_endpoint_healthcheck(self) -> str:
        return "/status"

    def _get_endpoint_recognize(self) -> str:
        return "/tesseract"

    ################ PAYLOAD BUILDER ##################
    def get_recognize_payload(self, image: bytes, file_name: str, content_type: str) -> tuple[dict, dict]:
        # OCR_TESSERACT_LANGUAGES=[deu,eng] wins over OCR_LANGUAGE=deu+eng
        languages = self.config["LANGUAGES"] or self.ocr_language.split("+")
        options = {"languages": languages}
        return {"options": json.dumps(options)}, {"file": (file_name, image, content_type)}

    ##########################################
    ################# OTHER ##################
    ##########################################

    def extract_text_from_response(self, response_data: dict) -> str:
        data = response_data.get("data") or {}
        exit_info = data.get("exit") or {}
        if exit_info.get("code") not in (None, 0):
            raise ValueError(f"tesseract exited with code {exit_info.get('code')}: {data.get('stderr', '')}")
        if "stdout" not in data:
            raise ValueError(f"tesseract response has no text. Response keys: {list(response_data.keys())}")
        return data["stdout"]
