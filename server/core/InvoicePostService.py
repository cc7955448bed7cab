from shared.clients.claims.ClaimsClientInterface import ClaimsClientInterface
from shared.helper.HelperConfig import HelperConfig
from shared.models.claims import PostInvoiceResult


class InvoicePostService:
    """Submits generated invoice payloads to the claims system, at most once."""

    def __init__(self, helper_config: HelperConfig, claims_client: ClaimsClientInterface) -> None:
        self.logging = helper_config.get_logger()
        self._claims = claims_client

    async def do_post_invoice(self, estimate_id: str, xml: str) -> PostInvoiceResult:
        """Post one invoice payload.

        Raises:
            DependencyError: If the claims API cannot be reached.
        """
        self.logging.info(
            "Posting invoice for estimate %s to %s (%s).",
            estimate_id, self._claims.get_engine_name().upper(), self._claims.get_environment_name(),
        )
        return await self._claims.do_post_invoice(estimate_id, xml)
