from typing import Any

from shared.clients.db.DBClientInterface import DBClientInterface
from shared.helper.HelperConfig import HelperConfig
from shared.models.config import EnvConfig


class DBClientSupabase(DBClientInterface):
    """Supabase database client speaking PostgREST (tables under /rest/v1)."""

    def __init__(self, helper_config: HelperConfig):
        super().__init__(helper_config=helper_config)
        self._base_url = self.config["BASE_URL"]
        self._api_key = self.config["API_KEY"]
        self._schema = self.config["SCHEMA"]

    ##########################################
    ################ GETTER ##################
    ##########################################

    ################ GENERAL ##################
    def _get_engine_name(self) -> str:
        return "Supabase"

    ################ CONFIG ##################
    def _get_required_config(self) -> list[EnvConfig]:
        return [
            EnvConfig(env_key="BASE_URL", val_type="string", default=None),
            EnvConfig(env_key="API_KEY", val_type="string", default=None),
            EnvConfig(env_key="SCHEMA", val_type="string", default="public"),
        ]

    ################ AUTH ##################
    def _get_auth_header(self) -> dict:
        # service role key, sent both as apikey and bearer token
        return {
            "apikey": self._api_key,
            "Authorization": f"Bearer {self._api_key}",
            "Accept-Profile": self._schema,
            "Content-Profile": self._schema,
        }

    ################ ENDPOINTS ##################
    def _get_base_url(self) -> str:
        return self._base_url

    def _get_endpoint_healthcheck(self) -> str:
        return "/rest/v1/"

    def _get_endpoint_table(self, table: str) -> str:
        return f"/rest/v1/{table}"

    def _get_endpoint_rpc(self, function: str) -> str:
        return f"/rest/v1/rpc/{function}"

    ##########################################
    ########### PAYLOAD BUILDER ##############
    ##########################################

    def get_write_headers(self, upsert: bool = False) -> dict:
        prefer = ["return=representation"]
        if upsert:
            prefer.insert(0, "resolution=merge-duplicates")
        return {"Prefer": ",".join(prefer)}

    def get_filter_params(self, filters: dict[str, Any] | None) -> dict:
        params = {}
        for column, value in (filters or {}).items():
            if isinstance(value, bool):
                value = str(value).lower()
            params[column] = f"eq.{value}"
        return params

    def get_conflict_params(self, on_conflict: str | None) -> dict:
        return {"on_conflict": on_conflict} if on_conflict else {}

    def get_match_documents_payload(self, query_embedding: list[float], match_count: int) -> dict:
        return {"query_embedding": query_embedding, "match_count": match_count}
