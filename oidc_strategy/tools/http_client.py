"""HTTP client used for all calls to the OIDC provider."""

import json
import logging
import ssl
from typing import Any, Mapping, Optional

import aiohttp

from ..config.options import NetworkOptions

_LOGGER = logging.getLogger(__name__)


class HTTPClientError(aiohttp.ClientResponseError):
    "Raised when the HTTP client encounters not OK (200) status code."

    body: str

    def __init__(self, *args, **kwargs):
        self.body = kwargs.pop("body")
        super().__init__(*args, **kwargs)

    def __str__(self):
        return f"{self.status} ({self.message}) with response body: {self.body}"

    def json_body(self) -> Optional[dict]:
        """Returns the body parsed as a JSON object, if it is one."""
        try:
            parsed = json.loads(self.body)
        except (TypeError, ValueError):
            return None
        return parsed if isinstance(parsed, dict) else None


async def http_raise_for_status(response: aiohttp.ClientResponse) -> None:
    """Raises an exception if the response is not OK."""
    if not response.ok:
        body = await response.text()

        raise HTTPClientError(
            response.request_info,
            response.history,
            status=response.status,
            message=response.reason or "",
            headers=response.headers,
            body=body,
        )


class OIDCHttpClient:
    """Thin wrapper around an aiohttp session with the configured TLS and timeout options.

    Timeouts and connection failures are raised as aiohttp/asyncio
    exceptions; translating them is up to the caller.
    """

    def __init__(
        self,
        network: NetworkOptions = NetworkOptions(),
        http_session: Optional[aiohttp.ClientSession] = None,
    ):
        self.network = network
        self.http_session = http_session
        self._owns_session = http_session is None

    async def _get_http_session(self) -> aiohttp.ClientSession:
        """Create or get the existing client session with custom networking/TLS options"""
        if self.http_session is not None:
            return self.http_session

        _LOGGER.debug(
            "Creating HTTP session with options: "
            + "verify certificates: %r, custom CA file: %s, timeout: %s",
            self.network.tls_verify,
            self.network.tls_ca_path,
            self.network.timeout,
        )

        ssl_option: ssl.SSLContext | bool = self.network.tls_verify
        if self.network.tls_verify and self.network.tls_ca_path:
            ssl_option = ssl.create_default_context(cafile=self.network.tls_ca_path)

        self.http_session = aiohttp.ClientSession(
            connector=aiohttp.TCPConnector(ssl=ssl_option),
            timeout=aiohttp.ClientTimeout(total=self.network.timeout),
        )
        self._owns_session = True
        return self.http_session

    async def async_get_json(
        self, url: str, headers: Optional[Mapping[str, str]] = None
    ) -> Any:
        """GETs a URL and returns the parsed JSON body."""
        session = await self._get_http_session()
        async with session.get(url, headers=dict(headers or {})) as response:
            await http_raise_for_status(response)
            return await response.json(content_type=None)

    async def async_post_form(
        self,
        url: str,
        data: Mapping[str, str],
        headers: Optional[Mapping[str, str]] = None,
    ) -> Any:
        """POSTs a form to a URL and returns the parsed JSON body."""
        session = await self._get_http_session()
        async with session.post(
            url,
            data=dict(data),
            headers={"Accept": "application/json", **(headers or {})},
        ) as response:
            await http_raise_for_status(response)
            return await response.json(content_type=None)

    async def async_close(self) -> None:
        """Closes the HTTP session if it was created here."""
        if self.http_session is not None and self._owns_session:
            _LOGGER.debug("Closing HTTP session")
            await self.http_session.close()
        self.http_session = None
