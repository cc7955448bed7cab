from urllib.parse import quote

from shared.clients.claims.ClaimsClientInterface import ClaimsClientInterface
from shared.helper.HelperConfig import HelperConfig
from shared.models.config import EnvConfig


class ClaimsClientCcc(ClaimsClientInterface):
    """CCC claims API client.

    CLAIMS_CCC_PRODUCTION selects the production or the sandbox base URL and
    bearer token.
    """

    def __init__(self, helper_config: HelperConfig):
        super().__init__(helper_config=helper_config)
        self._production = self.config["PRODUCTION"]
        prefix = "PROD" if self._production else "SANDBOX"
        self._base_url = self.config[f"{prefix}_BASE_URL"]
        self._token = self.config[f"{prefix}_TOKEN"]
        if not self._base_url or not self._token:
            raise ValueError(
                f"CCC {self.get_environment_name()} configuration is incomplete: "
                f"set {self._get_config_key_name(prefix + '_BASE_URL')} and {self._get_config_key_name(prefix + '_TOKEN')}."
            )

    ##########################################
    ################ GETTER ##################
    ##########################################

    ################ GENERAL ##################
    def _get_engine_name(self) -> str:
        return "Ccc"

    def get_environment_name(self) -> str:
        return "production" if self._production else "sandbox"

    ################ CONFIG ##################
    def _get_required_config(self) -> list[EnvConfig]:
        return [
            EnvConfig(env_key="PRODUCTION", val_type="bool", default=False),
            EnvConfig(env_key="PROD_BASE_URL", val_type="string", default=""),
            EnvConfig(env_key="PROD_TOKEN", val_type="string", default=""),
            EnvConfig(env_key="SANDBOX_BASE_URL", val_type="string", default=""),
            EnvConfig(env_key="SANDBOX_TOKEN", val_type="string", default=""),
        ]

    ################ AUTH ##################
    def _get_auth_header(self) -> dict:
        return {"Authorization": f"Bearer {self._token}"}

    ################ ENDPOINTS ##################
    def _get_base_url(self) -> str:
        return self._base_url

    def _get_endpoint_healthcheck(self) -> str:
        return ""

    def _get_endpoint_post_invoice(self, estimate_id: str) -> str:
        return f"/v7/estimate/{quote(estimate_id, safe='')}/invoice"

    def get_invoice_headers(self) -> dict:
        return {"Content-Type": "application/xml"}
