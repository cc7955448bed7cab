from abc import abstractmethod
from datetime import datetime
from typing import Any

from shared.clients.ClientInterface import ClientInterface
from shared.helper.HelperConfig import HelperConfig
from shared.models.document import Document, DocumentMatch
from shared.models.webhook import Invoice, WebhookConfig, WebhookEvent


class DBClientInterface(ClientInterface):
    """Relational + vector store reachable over a table/RPC HTTP interface.

    Generic table operations live here; the backend supplies endpoints,
    headers and filter encoding. Similarity ranking runs server-side in the
    ``match_documents`` function.
    """

    TABLE_DOCUMENTS = "documents"
    TABLE_INVOICES = "invoices"
    TABLE_WEBHOOK_EVENTS = "webhook_events"
    TABLE_WEBHOOK_CONFIGS = "webhook_configs"
    RPC_MATCH_DOCUMENTS = "match_documents"

    def __init__(self, helper_config: HelperConfig):
        super().__init__(helper_config=helper_config)

    ##########################################
    ################ GETTER ##################
    ##########################################

    ################ GENERAL ##################
    def _get_client_type(self) -> str:
        return "db"

    ################ ENDPOINTS ##################
    @abstractmethod
    def _get_endpoint_table(self, table: str) -> str:
        """
        Returns the endpoint path for row operations on a table (e.g. "/rest/v1/documents").
        """
        pass

    @abstractmethod
    def _get_endpoint_rpc(self, function: str) -> str:
        """
        Returns the endpoint path for calling a stored function (e.g. "/rest/v1/rpc/match_documents").
        """
        pass

    ################ PAYLOAD BUILDER ##################
    @abstractmethod
    def get_write_headers(self, upsert: bool = False) -> dict:
        """
        Returns the headers for insert / upsert requests.

        Args:
            upsert (bool): Whether a conflicting row should be replaced.
        """
        pass

    @abstractmethod
    def get_filter_params(self, filters: dict[str, Any] | None) -> dict:
        """
        Encodes equality filters {column: value} as query parameters.
        """
        pass

    @abstractmethod
    def get_conflict_params(self, on_conflict: str | None) -> dict:
        """
        Returns the query parameters that select the conflict target of an upsert.
        """
        pass

    @abstractmethod
    def get_match_documents_payload(self, query_embedding: list[float], match_count: int) -> dict:
        """
        Builds the arguments of the similarity ranking function.
        """
        pass

    ##########################################
    ############### REQUESTS #################
    ##########################################

    async def do_insert_rows(self, table: str, rows: list[dict]) -> list[dict]:
        """Insert rows into a table and return the stored representation.

        Raises:
            DependencyError: If the backend rejects the insert.
        """
        response = await self.do_request(
            method="POST",
            endpoint=self._get_endpoint_table(table),
            json=rows,
            additional_headers=self.get_write_headers(upsert=False),
            raise_on_error=True,
        )
        return self._rows_from_response(response)

    async def do_upsert_rows(self, table: str, rows: list[dict], on_conflict: str | None = None) -> list[dict]:
        """Insert rows or replace existing ones matching the conflict target.

        Args:
            table (str): Target table.
            rows (list[dict]): Rows to write.
            on_conflict (str | None): Column(s) forming the conflict target. None means the primary key.

        Raises:
            DependencyError: If the backend rejects the upsert.
        """
        response = await self.do_request(
            method="POST",
            endpoint=self._get_endpoint_table(table),
            json=rows,
            params=self.get_conflict_params(on_conflict),
            additional_headers=self.get_write_headers(upsert=True),
            raise_on_error=True,
        )
        return self._rows_from_response(response)

    async def do_select_rows(self, table: str, filters: dict[str, Any] | None = None) -> list[dict]:
        """Select rows matching equality filters."""
        response = await self.do_request(
            method="GET",
            endpoint=self._get_endpoint_table(table),
            params=self.get_filter_params(filters),
            raise_on_error=True,
        )
        return self._rows_from_response(response)

    async def do_update_rows(self, table: str, filters: dict[str, Any], values: dict) -> list[dict]:
        """Update the given columns on every row matching the filters.

        Raises:
            ValueError: If no filter is given; unfiltered updates are refused.
            DependencyError: If the backend rejects the update.
        """
        if not filters:
            raise ValueError(f"Refusing to update every row of '{table}' without a filter.")
        response = await self.do_request(
            method="PATCH",
            endpoint=self._get_endpoint_table(table),
            json=values,
            params=self.get_filter_params(filters),
            additional_headers=self.get_write_headers(upsert=False),
            raise_on_error=True,
        )
        return self._rows_from_response(response)

    async def do_rpc(self, function: str, params: dict) -> Any:
        """Call a stored function and return its decoded result."""
        response = await self.do_request(
            method="POST",
            endpoint=self._get_endpoint_rpc(function),
            json=params,
            raise_on_error=True,
        )
        return response.json() if response.content else None

    ##########################################
    ############### DOCUMENTS ################
    ##########################################

    async def do_upsert_document(self, document: Document) -> None:
        """Insert or replace a document by id (last write wins)."""
        await self.do_upsert_rows(self.TABLE_DOCUMENTS, [document.model_dump(mode="json")])

    async def do_insert_document(self, document: Document) -> None:
        """Insert a document; fails if the id already exists."""
        await self.do_insert_rows(self.TABLE_DOCUMENTS, [document.model_dump(mode="json", exclude_none=True)])

    async def do_match_documents(self, query_embedding: list[float], match_count: int) -> list[DocumentMatch]:
        """Rank stored documents by similarity to query_embedding, server-side.

        Returns:
            list[DocumentMatch]: The store's result set, in the store's order.
        """
        rows = await self.do_rpc(
            self.RPC_MATCH_DOCUMENTS,
            self.get_match_documents_payload(query_embedding, match_count),
        )
        matches: list[DocumentMatch] = []
        for row in rows or []:
            # vectors come back serialised as text, and callers never need them
            row = {key: value for key, value in row.items() if key != "embedding"}
            matches.append(DocumentMatch(**row))
        return matches

    ##########################################
    ########### WEBHOOK AUDIT ################
    ##########################################

    async def do_insert_invoice(self, invoice: Invoice) -> None:
        await self.do_insert_rows(self.TABLE_INVOICES, [invoice.model_dump(mode="json", exclude_none=True)])

    async def do_insert_webhook_event(self, event: WebhookEvent) -> WebhookEvent:
        """Store a webhook event and return it with its generated id."""
        rows = await self.do_insert_rows(
            self.TABLE_WEBHOOK_EVENTS,
            [event.model_dump(mode="json", exclude={"id"}, exclude_none=True)],
        )
        if rows:
            return WebhookEvent(**rows[0])
        return event

    async def do_mark_webhook_event_processed(self, event_id: str, processed_at: datetime) -> None:
        await self.do_update_rows(
            self.TABLE_WEBHOOK_EVENTS,
            filters={"id": event_id},
            values={"processed": True, "processed_at": processed_at.isoformat()},
        )

    ##########################################
    ########## WEBHOOK DESTINATIONS ##########
    ##########################################

    async def do_fetch_webhook_configs(self) -> list[WebhookConfig]:
        rows = await self.do_select_rows(self.TABLE_WEBHOOK_CONFIGS)
        return [WebhookConfig(**row) for row in rows]

    async def do_upsert_webhook_config(self, config: WebhookConfig) -> WebhookConfig | None:
        """Create or update the destination registered for config.ccc_id."""
        rows = await self.do_upsert_rows(
            self.TABLE_WEBHOOK_CONFIGS,
            [config.model_dump(mode="json", exclude={"id"}, exclude_none=True)],
            on_conflict="ccc_id",
        )
        return WebhookConfig(**rows[0]) if rows else None

    ##########################################
    ############### HELPERS ##################
    ##########################################

    def _rows_from_response(self, response) -> list[dict]:
        if not response.content:
            return []
        body = response.json()
        if isinstance(body, dict):
            return [body]
        return body
