"""Per-event-type webhook handlers and the registry that dispatches to them.

Handlers are registered by event-type tag at startup. The ingestion code only
knows the registry, so new event types need a new handler, not a new branch.
"""

from abc import ABC, abstractmethod
from typing import Any

from shared.helper.HelperConfig import HelperConfig
from shared.helper.HelperXml import find_path, first_text


class WebhookHandlerInterface(ABC):
    def __init__(self, helper_config: HelperConfig) -> None:
        self.logging = helper_config.get_logger()

    @abstractmethod
    def get_event_types(self) -> list[str]:
        """
        Returns the event-type tags this handler is registered for.
        """
        pass

    @abstractmethod
    async def handle(self, event_type: str, payload: Any) -> None:
        """
        Processes one event. Exceptions propagate to the caller.
        """
        pass


class InvoiceEventHandler(WebhookHandlerInterface):
    def get_event_types(self) -> list[str]:
        return ["invoice.created", "invoice.updated"]

    async def handle(self, event_type: str, payload: Any) -> None:
        self.logging.info("Processing %s event: %s", event_type, payload)


class MarketplaceEventHandler(WebhookHandlerInterface):
    def get_event_types(self) -> list[str]:
        return ["marketplace.listing"]

    async def handle(self, event_type: str, payload: Any) -> None:
        self.logging.info("Processing %s event: %s", event_type, payload)


class CCCInvoiceHandler(WebhookHandlerInterface):
    def get_event_types(self) -> list[str]:
        return ["VehicleDamageEstimateAddInvoiceRq"]

    async def handle(self, event_type: str, payload: Any) -> None:
        document_id = first_text(find_path(payload, "DocumentInfo", "DocumentID"))
        self.logging.info("Processing CCC %s for document %s", event_type, document_id or "<none>")


class WebhookHandlerRegistry:
    """Maps event-type tags to handlers; lookups are exact string matches."""

    def __init__(self, helper_config: HelperConfig, name: str) -> None:
        self.logging = helper_config.get_logger()
        self.name = name
        self._handlers: dict[str, WebhookHandlerInterface] = {}

    def register(self, handler: WebhookHandlerInterface) -> None:
        """Register handler for each of its event types.

        Raises:
            ValueError: If an event type already has a handler.
        """
        for event_type in handler.get_event_types():
            if event_type in self._handlers:
                raise ValueError(f"Event type '{event_type}' already has a handler in registry '{self.name}'.")
            self._handlers[event_type] = handler

    def get_handler(self, event_type: str) -> WebhookHandlerInterface | None:
        return self._handlers.get(event_type)

    def get_event_types(self) -> list[str]:
        return sorted(self._handlers)

    async def dispatch(self, event_type: str, payload: Any) -> bool:
        """Run the handler registered for event_type.

        Returns:
            bool: True if a handler ran, False for unknown event types.

        Raises:
            Exception: Whatever the handler raises.
        """
        handler = self.get_handler(event_type)
        if handler is None:
            self.logging.info("Unhandled webhook event type in '%s': %s", self.name, event_type)
            return False
        await handler.handle(event_type, payload)
        return True


def build_event_registry(helper_config: HelperConfig) -> WebhookHandlerRegistry:
    """Registry for the JSON webhook flow (invoice and marketplace events)."""
    registry = WebhookHandlerRegistry(helper_config, name="events")
    registry.register(InvoiceEventHandler(helper_config))
    registry.register(MarketplaceEventHandler(helper_config))
    return registry


def build_ccc_registry(helper_config: HelperConfig) -> WebhookHandlerRegistry:
    """Registry for the CCC XML webhook flow, keyed by root element name."""
    registry = WebhookHandlerRegistry(helper_config, name="ccc")
    registry.register(CCCInvoiceHandler(helper_config))
    return registry
