from abc import abstractmethod

from shared.clients.ClientInterface import ClientInterface
from shared.helper.HelperConfig import HelperConfig
from shared.models.claims import PostInvoiceResult


class ClaimsClientInterface(ClientInterface):
    def __init__(self, helper_config: HelperConfig):
        super().__init__(helper_config=helper_config)

    ##########################################
    ################ GETTER ##################
    ##########################################

    ################ GENERAL ##################
    def _get_client_type(self) -> str:
        return "claims"

    @abstractmethod
    def get_environment_name(self) -> str:
        """
        Returns the name of the selected backend environment (e.g. "production" or "sandbox").
        """
        pass

    ################ ENDPOINTS ##################
    @abstractmethod
    def _get_endpoint_post_invoice(self, estimate_id: str) -> str:
        """
        Returns the endpoint path for submitting an invoice to an estimate.
        """
        pass

    @abstractmethod
    def get_invoice_headers(self) -> dict:
        """
        Returns the content headers for an invoice submission.
        """
        pass

    ##########################################
    ############### REQUESTS #################
    ##########################################

    async def do_post_invoice(self, estimate_id: str, xml: str) -> PostInvoiceResult:
        """Submit an invoice payload once; there is no retry.

        Args:
            estimate_id (str): Estimate identifier in the claims system.
            xml (str): The pre-built invoice payload.

        Returns:
            PostInvoiceResult: success, or the remote status as "API Error <status>".

        Raises:
            DependencyError: If the claims API is unreachable or times out.
        """
        response = await self.do_request(
            method="POST",
            endpoint=self._get_endpoint_post_invoice(estimate_id),
            content=xml.encode("utf-8"),
            additional_headers=self.get_invoice_headers(),
        )
        if not response.is_success:
            self.logging.error(
                "%s API error (%s): %d - %s",
                self.get_engine_name().upper(),
                self.get_environment_name(),
                response.status_code,
                response.text[:500],
            )
            return PostInvoiceResult(
                success=False,
                error=f"API Error {response.status_code}",
                status_code=response.status_code,
            )
        self.logging.info("Posted invoice for estimate %s to %s.", estimate_id, self.get_environment_name())
        return PostInvoiceResult(success=True, status_code=response.status_code)
