"""Asynchronous HTTP utilities for talking to the speech provider gateways.

The `AsyncHttp` class wraps a single aiohttp session, decodes responses through a table of
content type handlers and maps transport failures onto a small exception hierarchy. Non-2xx
responses keep their status code and decoded error body so that callers can translate them
into their own error taxonomy without touching aiohttp types.
"""

from __future__ import annotations

import json
from typing import TYPE_CHECKING, Any, Final, Literal, NamedTuple, Self

import aiohttp
from aiohttp.client import ClientSession

from utils.logger_utils import LoggerUtils

if TYPE_CHECKING:
    import logging
    from collections.abc import Callable, Mapping

    from aiohttp.client import ClientResponse


__all__: list[str] = [
    "AsyncCommConnectionError",
    "AsyncCommError",
    "AsyncCommInvalidContentTypeError",
    "AsyncCommTimeoutError",
    "AsyncHttp",
    "HttpResponse",
]

logger: logging.Logger = LoggerUtils.get_logger(__name__)

HTTPMethod = Literal["GET", "POST", "PUT", "PATCH", "DELETE", "HEAD", "OPTIONS"]

CONNECT_TIMEOUT: Final[float] = 3.0
DEFAULT_TOTAL_TIMEOUT: Final[float] = 30.0


class HttpResponse(NamedTuple):
    """Decoded HTTP response.

    Attributes:
        status (int): HTTP status code.
        headers (Mapping[str, str]): Response headers (case-insensitive mapping).
        data (Any): Body decoded by the content type handler, None for an empty body.
    """

    status: int
    headers: Mapping[str, str]
    data: Any


class AsyncHttp:
    """Asynchronous HTTP client with pluggable response decoding.

    Handlers are keyed by the media type of the ``Content-Type`` header. Text and JSON are
    registered by default; callers add binary types such as ``audio/mpeg`` themselves.
    """

    def __init__(self, *, headers: Mapping[str, str] | None = None) -> None:
        """Initialize the client. The session is opened on the first request.

        Args:
            headers (Mapping[str, str] | None): Headers sent with every request.
        """
        logger.info("%s initializing", self.__class__.__name__)
        self.__session: ClientSession | None = None
        self.default_headers: dict[str, str] = dict(headers or {})
        self.content_handlers: dict[str, Callable[[bytes], Any]] = {}

        self.add_handler("text/plain", lambda x: x.decode("utf-8"))
        self.add_handler("text/html", lambda x: x.decode("utf-8"))
        self.add_handler("application/json", lambda x: json.loads(x.decode("utf-8")))
        self.list_handlers()

    async def __aenter__(self) -> Self:
        self.initialize_session(suppress_already_log=True)
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        _ = exc_type, exc_val, exc_tb
        await self.close()

    def initialize_session(self, *, suppress_already_log: bool = False) -> None:
        """Open the aiohttp session unless one is already open.

        Status checking is done by `request` so that error bodies can be read.
        """
        if self.__session is None or self.__session.closed:
            self.__session = ClientSession(raise_for_status=False, headers=self.default_headers)
            logger.debug("%s session initialized", self.__class__.__name__)
        elif not suppress_already_log:
            logger.debug("%s session already initialized", self.__class__.__name__)

    @property
    def session(self) -> ClientSession:
        if self.__session is None or self.__session.closed:
            msg = "Session is not initialized or has been closed"
            raise RuntimeError(msg)
        return self.__session

    @property
    def closed(self) -> bool:
        return self.__session is None or self.__session.closed

    async def close(self) -> None:
        """Close the aiohttp session if it is open."""
        if self.__session and not self.__session.closed:
            await self.__session.close()
        logger.info("%s session closed", self.__class__.__name__)

    async def get(
        self, *, url: str, headers: Mapping[str, str] | None = None, total_timeout: float = DEFAULT_TOTAL_TIMEOUT
    ) -> Any:
        """Perform a GET request and return the decoded body."""
        response: HttpResponse = await self.request("GET", url=url, headers=headers, total_timeout=total_timeout)
        return response.data

    async def post(
        self,
        *,
        url: str,
        params: dict[str, str] | None = None,
        data: Any | None = None,
        headers: Mapping[str, str] | None = None,
        total_timeout: float = DEFAULT_TOTAL_TIMEOUT,
    ) -> Any:
        """Perform a POST request with a JSON body and return the decoded body."""
        response: HttpResponse = await self.request(
            "POST", url=url, params=params, json=data, headers=headers, total_timeout=total_timeout
        )
        return response.data

    async def request(
        self,
        method: HTTPMethod,
        *,
        url: str,
        total_timeout: float = DEFAULT_TOTAL_TIMEOUT,
        **kwargs: Any,
    ) -> HttpResponse:
        """Perform a request and return status, headers and decoded body.

        Args:
            method (HTTPMethod): HTTP method.
            url (str): Target URL.
            total_timeout (float): Total timeout in seconds. Zero or negative disables it.
            **kwargs: Passed through to ``ClientSession.request`` (json, params, data, headers).

        Returns:
            HttpResponse: The decoded response.

        Raises:
            AsyncCommTimeoutError: The server did not answer in time.
            AsyncCommConnectionError: The server could not be reached.
            AsyncCommError: The server answered with a non-2xx status.
            AsyncCommInvalidContentTypeError: No handler is registered for the response type.
        """
        logger.debug("[%s] url=%s timeout=%s", method, url, total_timeout)
        if total_timeout <= 0:
            _timeout = aiohttp.ClientTimeout(total=None)
        elif total_timeout < CONNECT_TIMEOUT:
            _timeout = aiohttp.ClientTimeout(total=total_timeout)
        else:
            _timeout = aiohttp.ClientTimeout(connect=CONNECT_TIMEOUT, total=total_timeout)

        self.initialize_session(suppress_already_log=True)
        try:
            async with self.session.request(method=method, url=url, timeout=_timeout, **kwargs) as resp:
                if resp.status >= 400:
                    await self._raise_for_status(resp)
                return HttpResponse(status=resp.status, headers=resp.headers, data=await self.decode_response(resp))

        except TimeoutError as err:
            logger.debug(err)
            msg = "Timeout due to a lack of response from the server."
            raise AsyncCommTimeoutError(msg) from err
        except (ConnectionResetError, aiohttp.ServerDisconnectedError) as err:
            logger.debug(err)
            msg = "The connection to the server has been disconnected."
            raise AsyncCommConnectionError(msg) from err
        except aiohttp.ClientConnectorError as err:
            logger.debug(err)
            msg = "The server is not running, or the port is closed."
            raise AsyncCommConnectionError(msg) from err
        except aiohttp.ClientPayloadError as err:
            logger.debug(err)
            msg = "The response body could not be read completely."
            raise AsyncCommConnectionError(msg) from err

    async def _raise_for_status(self, resp: ClientResponse) -> None:
        """Raise AsyncCommError carrying the status and the decoded error body."""
        raw: bytes = await resp.read()
        body: Any = None
        if raw:
            try:
                body = json.loads(raw.decode("utf-8"))
            except (UnicodeDecodeError, json.JSONDecodeError):
                body = raw.decode("utf-8", errors="replace")
        logger.debug("Error response %s: %s", resp.status, body)
        msg: str = f"Error response from the server ({resp.reason or 'no reason'})"
        raise AsyncCommError(msg, status=resp.status, body=body)

    async def decode_response(self, resp: ClientResponse) -> Any:
        """Decode a response body with the handler registered for its content type.

        Raises:
            AsyncCommInvalidContentTypeError: No handler is registered for the content type.
        """
        content_type: str = resp.headers.get("Content-Type", "").split(";")[0].strip()
        logger.debug("'Content-Type': '%s'", content_type)

        raw: bytes = await resp.read()
        if not raw:
            logger.debug("Received empty response")
            return None

        handler: Callable[[bytes], Any] | None = self.content_handlers.get(content_type)
        if handler:
            return handler(raw)

        msg: str = f"Unknown Content-Type '{content_type}'"
        raise AsyncCommInvalidContentTypeError(msg)

    def add_handler(self, content_type: str, handler: Callable[[bytes], Any]) -> None:
        """Register a decoder for a content type, replacing any previous one."""
        if self.content_handlers.get(content_type):
            logger.warning("Handler for content type '%s' already exists, replacing it", content_type)
        self.content_handlers[content_type] = handler
        logger.debug("Added handler for content type '%s'", content_type)

    def list_handlers(self) -> None:
        if not self.content_handlers:
            logger.info("No content type handlers registered")
            return
        logger.info("Handlers registered for content types '%s'", list(self.content_handlers.keys()))


class AsyncCommError(Exception):
    """Base class for HTTP communication errors.

    Attributes:
        msg (str): Description, with the status appended when there is one.
        status (int | None): HTTP status of an error response, None for transport failures.
        body (Any): Decoded error body of the response.
    """

    def __init__(self, msg: str | BaseException, *, status: int | None = None, body: Any = None) -> None:
        self.msg: str = str(msg)
        self.status: int | None = status
        self.body: Any = body
        if status is not None:
            self.msg = f"{self.msg}: status='{status}'"
        super().__init__(self.msg)


class AsyncCommTimeoutError(AsyncCommError):
    """The server did not respond within the timeout."""


class AsyncCommConnectionError(AsyncCommError):
    """The server could not be reached or dropped the connection."""


class AsyncCommInvalidContentTypeError(AsyncCommError):
    """The response had a content type without a registered handler."""
