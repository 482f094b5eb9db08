import collections.abc as _cabc
import contextlib as _ctx
import logging as _log

import httpx as _httpx

import resultes_rpcclient.jsonrpc.errors as _errs

_LOGGER = _log.getLogger(__name__)

DEFAULT_TIMEOUT_SECONDS = 15.0

JSON_HEADERS = {"Content-Type": "application/json", "Accept": "application/json"}


def is_connection_refused(error: BaseException) -> bool:
    """Whether `error` or any exception it was raised from is a refused connection."""
    seen = set[int]()
    current: BaseException | None = error
    while current is not None and id(current) not in seen:
        if isinstance(current, ConnectionRefusedError):
            return True
        seen.add(id(current))
        current = current.__cause__ or current.__context__

    return False


def is_json_content_type(content_type: str | None) -> bool:
    if not content_type:
        return False

    media_type = content_type.split(";", 1)[0].strip().lower()
    return media_type == "application/json" or media_type.endswith("+json")


class HttpTransport:
    """
    POSTs each payload to `url`, one HTTP exchange per JSON-RPC exchange.

    Unless an `httpx.Client` is passed in, a connection is opened and closed
    for every exchange. A passed-in client is owned by the caller.
    """

    def __init__(
        self,
        url: str,
        *,
        user: str | None = None,
        password: str | None = None,
        timeout: float | None = DEFAULT_TIMEOUT_SECONDS,
        proxy: str | None = None,
        http_client: _httpx.Client | None = None,
    ) -> None:
        self._url = url
        self._auth = _httpx.BasicAuth(user, password or "") if user is not None else None
        self._timeout = timeout
        self._proxy = proxy
        self._http_client = http_client

    def exchange(self, payload: bytes) -> bytes:
        _LOGGER.debug("Posting %d bytes to %s.", len(payload), self._url)

        try:
            with self._client() as http_client:
                response = http_client.post(
                    self._url,
                    content=payload,
                    headers=JSON_HEADERS,
                    auth=self._auth or _httpx.USE_CLIENT_DEFAULT,
                )
        except _httpx.TimeoutException as timeout_exception:
            raise _errs.TransportTimeout(str(timeout_exception)) from timeout_exception
        except _httpx.ConnectError as connect_error:
            if is_connection_refused(connect_error):
                raise _errs.ConnectionRefused(str(connect_error)) from connect_error
            raise _errs.TransportError(str(connect_error)) from connect_error
        except _httpx.HTTPError as http_error:
            raise _errs.TransportError(str(http_error)) from http_error

        if response.is_success or is_json_content_type(
            response.headers.get("Content-Type")
        ):
            return response.content

        raise _errs.HttpStatusError(response.status_code, response.reason_phrase)

    @_ctx.contextmanager
    def _client(self) -> _cabc.Iterator[_httpx.Client]:
        if self._http_client is not None:
            yield self._http_client
            return

        with _httpx.Client(timeout=self._timeout, proxy=self._proxy) as http_client:
            yield http_client
