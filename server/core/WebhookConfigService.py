from datetime import datetime, timezone

from shared.clients.db.DBClientInterface import DBClientInterface
from shared.helper.HelperConfig import HelperConfig
from shared.models.webhook import WebhookConfig


class WebhookConfigService:
    """Lists and registers outbound webhook destinations per CCC id."""

    def __init__(self, helper_config: HelperConfig, db_client: DBClientInterface) -> None:
        self.logging = helper_config.get_logger()
        self._db = db_client

    async def do_list(self) -> list[WebhookConfig]:
        return await self._db.do_fetch_webhook_configs()

    async def do_register(self, ccc_id: str, marketplace_id: str, endpoint: str, secret: str) -> WebhookConfig | None:
        """Create the destination for ccc_id, or update the existing one.

        Raises:
            DependencyError: If the store rejects the upsert.
        """
        now = datetime.now(timezone.utc).isoformat()
        config = WebhookConfig(
            ccc_id=ccc_id,
            marketplace_id=marketplace_id,
            endpoint=endpoint,
            secret=secret,
            enabled=True,
            metadata={"created_at": now, "last_updated": now},
        )
        stored = await self._db.do_upsert_webhook_config(config)
        self.logging.info("Registered webhook destination for ccc_id=%s marketplace=%s", ccc_id, marketplace_id)
        return stored
