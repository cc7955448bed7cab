from shared.clients.llm.LLMClientInterface import LLMClientInterface
from shared.helper.HelperConfig import HelperConfig
from shared.models.config import EnvConfig


class LLMClientOpenai(LLMClientInterface):
    def __init__(self, helper_config: HelperConfig):
        super().__init__(helper_config=helper_config)
        self._base_url = self.config["BASE_URL"]
        self._api_key = self.config["API_KEY"]

    ##########################################
    ################ GETTER ##################
    ##########################################

    ################ GENERAL ##################
    def _get_engine_name(self) -> str:
        return "Openai"

    ################ CONFIG ##################
    def _get_required_config(self) -> list[EnvConfig]:
        return [
            EnvConfig(env_key="BASE_URL", val_type="string", default="https://api.openai.com/v1"),
            EnvConfig(env_key="API_KEY", val_type="string", default=None),
        ]

    ################ AUTH ##################
    def _get_auth_header(self) -> dict:
        return {"Authorization": f"Bearer {self._api_key}"}

    ################ ENDPOINTS ##################
    def _get_base_url(self) -> str:
        return self._base_url

    def _get_endpoint_healthcheck(self) -> str:
        return "/models"

    def _get_endpoint_chat(self) -> str:
        return "/chat/completions"

    ################ PAYLOAD BUILDER ##################
    def get_chat_payload(self, messages: list[dict], temperature: float | None = None) -> dict:
        """Build the OpenAI chat completion request body.

        Returns:
            dict: {"model": "...", "messages": [...]} plus "temperature" when given.
        """
        payload = {"model": self.chat_model, "messages": messages}
        if temperature is not None:
            payload["temperature"] = temperature
        return payload

    ##########################################
    ################# OTHER ##################
    ##########################################

    def extract_chat_response(self, response_data: dict) -> str:
        """Extract the first choice's message content from an OpenAI response.

        Raises:
            ValueError: If the response carries no choices.
        """
        choices = response_data.get("choices") or []
        if not choices:
            raise ValueError(
                "OpenAI chat response does not contain choices. "
                "Response keys: %s" % list(response_data.keys())
            )
        message = choices[0].get("message") or {}
        return message.get("content") or ""
