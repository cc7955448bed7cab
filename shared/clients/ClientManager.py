from shared.helper.HelperConfig import HelperConfig
from shared.clients.ClientInterface import ClientInterface


class ClientManager:
    """
    Instantiates the client configured for one client type.

    The engine is read from "<TYPE>_ENGINE" (e.g. EMBED_ENGINE=openai) and the
    class is imported from shared.clients.<type>.<engine>.<Prefix>Client<Engine>,
    e.g. shared.clients.embed.openai.EmbedClientOpenai.
    """

    _CLASS_PREFIXES = {
        "embed": "Embed",
        "llm": "LLM",
        "ocr": "OCR",
        "db": "DB",
        "claims": "Claims",
    }

    def __init__(self, helper_config: HelperConfig, client_type: str, default_engine: str | None = None):
        self.helper_config = helper_config
        self.logging = helper_config.get_logger()
        self.client_type = client_type.lower()
        self.default_engine = default_engine
        self.client = self._initialize_client()

    def _get_engine_from_env(self) -> str:
        """
        Reads the engine name from ENV configuration.

        Returns:
            str: The capitalised engine name (e.g. "Supabase").

        Raises:
            ValueError: If no engine is configured and there is no default.
        """
        engine = self.helper_config.get_string_val(f"{self.client_type.upper()}_ENGINE", default=self.default_engine)
        if not engine:
            raise ValueError(f"No {self.client_type.upper()} engine specified in configuration.")
        return engine.strip().lower().capitalize()

    def _initialize_client(self) -> ClientInterface:
        """
        Imports and instantiates the client class for the configured engine.

        Raises:
            ValueError: If the client type is unknown or the engine is unsupported.
        """
        prefix = self._CLASS_PREFIXES.get(self.client_type)
        if prefix is None:
            raise ValueError(f"Unknown client type '{self.client_type}'.")
        engine = self._get_engine_from_env()
        class_name = f"{prefix}Client{engine}"
        try:
            module = __import__(
                f"shared.clients.{self.client_type}.{engine.lower()}.{class_name}",
                fromlist=[class_name],
            )
            client_class = getattr(module, class_name)
        except (ImportError, AttributeError) as e:
            raise ValueError(f"Unsupported {self.client_type.upper()} engine specified: '{engine}'. Error: {e}")
        client = client_class(helper_config=self.helper_config)
        self.logging.debug("Instantiated %s client for engine: %s", self.client_type.upper(), engine)
        return client

    def get_client(self) -> ClientInterface:
        """
        Returns the instantiated client.
        """
        return self.client
