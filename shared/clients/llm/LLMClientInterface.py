from abc import abstractmethod

from shared.clients.ClientInterface import ClientInterface
from shared.helper.HelperConfig import HelperConfig
from shared.helper.errors import DependencyError

Message = dict[str, str]


def system_message(content: str) -> Message:
    return {"role": "system", "content": content}


def user_message(content: str) -> Message:
    return {"role": "user", "content": content}


class LLMClientInterface(ClientInterface):
    """Chat completion backend used for invoice summaries and field extraction."""

    def __init__(self, helper_config: HelperConfig):
        super().__init__(helper_config=helper_config)
        self.chat_model = helper_config.get_string_val("LLM_CHAT_MODEL", default="gpt-3.5-turbo")

    def _get_client_type(self) -> str:
        return "llm"

    ##########################################
    ############ BACKEND HOOKS ###############
    ##########################################

    @abstractmethod
    def _get_endpoint_chat(self) -> str:
        pass

    @abstractmethod
    def get_chat_payload(self, messages: list[Message], temperature: float | None = None) -> dict:
        """
        Returns the request body for one completion. A temperature of None
        leaves the backend default in place.
        """
        pass

    @abstractmethod
    def extract_chat_response(self, response_data: dict) -> str:
        """
        Returns the assistant reply.

        Raises:
            ValueError: If the body carries no reply.
        """
        pass

    ##########################################
    ############### REQUESTS #################
    ##########################################

    async def do_chat(self, messages: list[Message], temperature: float | None = None) -> str:
        """Run one completion and return the reply text.

        Raises:
            DependencyError: If the backend fails or answers without a reply.
        """
        response = await self.do_request(
            method="POST",
            endpoint=self._get_endpoint_chat(),
            json=self.get_chat_payload(messages, temperature=temperature),
            raise_on_error=True,
        )
        try:
            reply = self.extract_chat_response(response.json())
        except ValueError as e:
            raise DependencyError(f"Unusable chat response from {self.get_engine_name()}: {e}") from e
        self.logging.debug("%s replied with %d characters.", self.chat_model, len(reply))
        return reply
