import os
from abc import ABC, abstractmethod
from typing import Any

import httpx
from httpx._types import QueryParamTypes, RequestContent, RequestData, RequestFiles

from shared.helper.HelperConfig import HelperConfig
from shared.helper.errors import DependencyError
from shared.models.config import EnvConfig

DEFAULT_TIMEOUT = 30.0


class ClientInterface(ABC):
    """Base class of every outbound HTTP backend (database, embedding, chat, OCR, claims).

    A client is configured from environment keys named
    ``<TYPE>_<ENGINE>_<KEY>`` (e.g. ``DB_SUPABASE_BASE_URL``). All declared keys
    are resolved once at construction, so a misconfigured backend fails at
    startup rather than on its first request. The HTTP connection pool lives
    between ``boot()`` and ``close()``.
    """

    def __init__(self, helper_config: HelperConfig):
        self.logging = helper_config.get_logger()
        self._helper_config = helper_config
        self.timeout = helper_config.get_number_val(f"{self.get_client_type().upper()}_TIMEOUT", default=DEFAULT_TIMEOUT)
        self._client: httpx.AsyncClient | None = None

        # resolved values of _get_required_config(), by raw key
        self.config: dict[str, Any] = self.load_configuration()

    ##########################################
    ############### CONFIG ###################
    ##########################################

    def load_configuration(self) -> dict[str, Any]:
        """Resolve every declared configuration key.

        Returns:
            dict[str, Any]: {raw key: value}, e.g. {"BASE_URL": "https://..."}

        Raises:
            ValueError: If a key without default is unset or a value does not parse.
        """
        return {
            entry.env_key.upper(): self.get_config_val(entry.env_key, default=entry.default, val_type=entry.val_type)
            for entry in self._get_required_config()
        }

    @abstractmethod
    def _get_required_config(self) -> list[EnvConfig]:
        """
        Declares the configuration keys of the client. A default of None marks a key as mandatory.
        """
        pass

    def _get_config_key_name(self, raw_key: str) -> str:
        """
        Returns the environment variable name of a raw key, e.g. "API_KEY" -> "DB_SUPABASE_API_KEY".
        """
        return f"{self.get_client_type().upper()}_{self.get_engine_name().upper()}_{raw_key.upper()}"

    def get_config_val(self, raw_key: str, default: Any = None, val_type: str = "string") -> Any:
        """Read one client-scoped configuration value.

        Args:
            raw_key (str): Key without the "<TYPE>_<ENGINE>_" prefix.
            default (Any): Value used when the variable is unset.
            val_type (str): "string", "number", "bool" or "list".
        """
        readers = {
            "string": self._helper_config.get_string_val,
            "number": self._helper_config.get_number_val,
            "bool": self._helper_config.get_bool_val,
            "list": self._helper_config.get_list_val,
        }
        reader = readers.get(val_type)
        if reader is None:
            raise ValueError(
                f"Unsupported value type '{val_type}' for {self._get_config_key_name(raw_key)} "
                f"({self.get_client_type().upper()} client '{self.get_engine_name()}')."
            )
        return reader(self._get_config_key_name(raw_key), default=default)

    ##########################################
    ############## IDENTITY ##################
    ##########################################

    def get_client_type(self) -> str:
        """Lowercase client type, e.g. "db"."""
        return self._get_client_type().lower()

    @abstractmethod
    def _get_client_type(self) -> str:
        pass

    def get_engine_name(self) -> str:
        """Lowercase engine name, e.g. "supabase"."""
        return self._get_engine_name().lower()

    @abstractmethod
    def _get_engine_name(self) -> str:
        pass

    ##########################################
    ########## BACKEND ADDRESSING ############
    ##########################################

    @abstractmethod
    def _get_base_url(self) -> str:
        """
        Returns the root URL the endpoint paths are appended to.
        """
        pass

    @abstractmethod
    def _get_endpoint_healthcheck(self) -> str:
        """
        Returns the path probed on startup. An empty string probes the base URL.
        """
        pass

    @abstractmethod
    def _get_auth_header(self) -> dict:
        """
        Returns the credential headers of the backend; empty when none are configured.
        """
        pass

    def get_default_headers(self) -> dict:
        """Headers sent with every request, including absolute-URL downloads."""
        return {"User-Agent": f"invoice-ai-bridge/{os.getenv('APP_VERSION', 'dev')}"}

    def build_url(self, endpoint: str) -> str:
        path = endpoint.strip().lstrip("/")
        base = self._get_base_url().rstrip("/")
        return f"{base}/{path}" if path else base

    ##########################################
    ############## LIFECYCLE #################
    ##########################################

    async def boot(self) -> None:
        """Open the connection pool."""
        self._client = httpx.AsyncClient(timeout=self.timeout)

    async def close(self) -> None:
        """Close the connection pool; safe to call twice."""
        if self._client is not None:
            await self._client.aclose()
            self._client = None

    async def do_healthcheck(self) -> httpx.Response:
        return await self.do_request(method="GET", endpoint=self._get_endpoint_healthcheck())

    ##########################################
    ############### REQUESTS #################
    ##########################################

    async def do_request(
        self,
        method: str = "GET",
        content: RequestContent | None = None,
        data: RequestData | None = None,
        files: RequestFiles | None = None,
        json: Any = None,
        params: QueryParamTypes | None = None,
        endpoint: str = "",
        url: str | None = None,
        additional_headers: dict | None = None,
        raise_on_error: bool = False,
    ) -> httpx.Response:
        """Send one request to the backend.

        Exactly one body kind is sent: raw ``content``, a multipart/form body
        (``data`` and/or ``files``), or ``json``, in that precedence.

        Args:
            method: HTTP verb.
            endpoint: Path below the base URL.
            url: Absolute URL used instead of base URL + endpoint. Credential
                headers are not sent to it.
            additional_headers: Headers that override the defaults.
            raise_on_error: Turn a non-2xx status into DependencyError.

        Returns:
            httpx.Response: The response, whatever its status unless raise_on_error is set.

        Raises:
            Exception: If the client has not been booted.
            DependencyError: On timeouts, transport failures and, with
                raise_on_error, non-2xx statuses.
        """
        if self._client is None:
            raise Exception(
                f"{self.get_client_type().upper()} client '{self.get_engine_name()}' is not booted. Call boot() first."
            )

        headers = self.get_default_headers()
        if url is None:
            url = self.build_url(endpoint)
            headers.update(self._get_auth_header())
        headers.update(additional_headers or {})

        if content is not None:
            body = {"content": content}
        elif data is not None or files is not None:
            body = {key: value for key, value in (("data", data), ("files", files)) if value is not None}
        elif json is not None:
            body = {"json": json}
        else:
            body = {}

        try:
            response = await self._client.request(
                method, url, headers=headers, params=params, timeout=self.timeout, **body
            )
        except httpx.TimeoutException as e:
            self.logging.error("%s %s timed out after %ss.", method, url, self.timeout)
            raise DependencyError(f"{method} {url} timed out") from e
        except httpx.HTTPError as e:
            self.logging.error("%s %s failed: %s", method, url, e)
            raise DependencyError(f"{method} {url} failed: {e}") from e

        if raise_on_error and not response.is_success:
            self.logging.error("%s %s answered %d: %s", method, url, response.status_code, response.text[:500])
            raise DependencyError(
                f"{method} {url} answered {response.status_code}",
                status_code=response.status_code,
                body=response.text,
            )
        return response
