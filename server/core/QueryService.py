from shared.clients.db.DBClientInterface import DBClientInterface
from shared.clients.embed.EmbedClientInterface import EmbedClientInterface
from shared.helper.HelperConfig import HelperConfig
from shared.models.document import DocumentMatch

DEFAULT_TOP_K = 5


class QueryService:
    """Handles semantic search queries: embed -> rank in the store -> pass through."""

    def __init__(
        self,
        helper_config: HelperConfig,
        embed_client: EmbedClientInterface,
        db_client: DBClientInterface,
    ) -> None:
        self.logging = helper_config.get_logger()
        self._embed = embed_client
        self._db = db_client

    ##########################################
    ############### CORE #####################
    ##########################################

    async def do_query(self, query: str, top_k: int = DEFAULT_TOP_K) -> list[DocumentMatch]:
        """Embed a query and return the top_k most similar stored documents.

        Ranking happens in the store; the result order is kept as returned.
        Fewer than top_k stored documents is not an error.

        Args:
            query (str): Free-text query.
            top_k (int): Maximum number of documents to return.

        Returns:
            list[DocumentMatch]: At most top_k documents, most similar first.

        Raises:
            ValueError: If top_k is smaller than 1.
            DependencyError: If embedding or ranking fails.
        """
        if top_k < 1:
            raise ValueError(f"top_k must be at least 1, got {top_k}.")
        self.logging.info("QueryService.do_query: query=%r, top_k=%d", query[:80], top_k)

        query_vector = await self._embed.do_embed_text(query)
        self.logging.debug("Query vector dimension: %d", len(query_vector))

        matches = await self._db.do_match_documents(query_vector, top_k)
        if len(matches) > top_k:
            self.logging.warning("Store returned %d matches for top_k=%d; truncating.", len(matches), top_k)
            matches = matches[:top_k]

        self.logging.info("QueryService.do_query: returning %d document(s).", len(matches))
        return matches
