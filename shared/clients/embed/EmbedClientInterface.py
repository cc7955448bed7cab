from abc import abstractmethod

from shared.clients.ClientInterface import ClientInterface
from shared.helper.HelperConfig import HelperConfig
from shared.helper.errors import DependencyError


class EmbedClientInterface(ClientInterface):
    """Turns texts into fixed-size vectors for the documents table.

    EMBED_MODEL selects the model and EMBED_DIMENSIONS must match the
    ``vector(N)`` column of the store; vectors of any other size are rejected
    before they reach it.
    """

    def __init__(self, helper_config: HelperConfig):
        super().__init__(helper_config=helper_config)
        self.embed_model = helper_config.get_string_val("EMBED_MODEL", default="text-embedding-ada-002")
        self.embed_dimensions = int(helper_config.get_number_val("EMBED_DIMENSIONS", default=1536))

    def _get_client_type(self) -> str:
        return "embed"

    ##########################################
    ############ BACKEND HOOKS ###############
    ##########################################

    @abstractmethod
    def get_endpoint_embedding(self) -> str:
        pass

    @abstractmethod
    def get_embed_payload(self, texts: list[str]) -> dict:
        """
        Returns the request body that embeds all texts in one call.
        """
        pass

    @abstractmethod
    def extract_embeddings_from_response(self, response_data: dict) -> list[list[float]]:
        """
        Returns one vector per input text, in input order.

        Raises:
            ValueError: If the body carries no usable vectors.
        """
        pass

    ##########################################
    ############### REQUESTS #################
    ##########################################

    async def do_embed(self, texts: list[str]) -> list[list[float]]:
        """Embed a batch of texts in one request.

        Raises:
            DependencyError: If the backend fails, answers without usable
                vectors, or returns vectors of the wrong size.
        """
        response = await self.do_request(
            method="POST",
            endpoint=self.get_endpoint_embedding(),
            json=self.get_embed_payload(texts),
            raise_on_error=True,
        )
        try:
            vectors = self.extract_embeddings_from_response(response.json())
        except ValueError as e:
            raise DependencyError(f"Unusable embedding response from {self.get_engine_name()}: {e}") from e

        if len(vectors) != len(texts):
            raise DependencyError(f"Asked for {len(texts)} embeddings, {self.get_engine_name()} returned {len(vectors)}.")
        sizes = {len(vector) for vector in vectors}
        if sizes != {self.embed_dimensions}:
            raise DependencyError(
                f"Model '{self.embed_model}' returned vectors of size {sorted(sizes)}, "
                f"the store expects {self.embed_dimensions} (EMBED_DIMENSIONS)."
            )
        return vectors

    async def do_embed_text(self, text: str) -> list[float]:
        return (await self.do_embed([text]))[0]
