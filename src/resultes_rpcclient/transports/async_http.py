import asyncio as _asyncio
import collections.abc as _cabc
import contextlib as _ctx
import logging as _log

import aiohttp as _ahttp

import resultes_rpcclient.jsonrpc.errors as _errs
import resultes_rpcclient.transports.http as _rth

_LOGGER = _log.getLogger(__name__)


class AiohttpTransport:
    def __init__(
        self,
        url: str,
        *,
        user: str | None = None,
        password: str | None = None,
        timeout: float | None = _rth.DEFAULT_TIMEOUT_SECONDS,
        session: _ahttp.ClientSession | None = None,
    ) -> None:
        self._url = url
        self._auth = _ahttp.BasicAuth(user, password or "") if user is not None else None
        self._timeout = _ahttp.ClientTimeout(total=timeout)
        self._session = session

    async def exchange(self, payload: bytes) -> bytes:
        _LOGGER.debug("Posting %d bytes to %s.", len(payload), self._url)

        try:
            async with self._session_scope() as session:
                async with session.post(
                    self._url,
                    data=payload,
                    headers=_rth.JSON_HEADERS,
                    auth=self._auth,
                    timeout=self._timeout,
                ) as response:
                    data = await response.read()
        except _asyncio.TimeoutError as timeout_error:
            raise _errs.TransportTimeout(
                f"No response from {self._url} in time."
            ) from timeout_error
        except _ahttp.ClientConnectorError as connector_error:
            if isinstance(connector_error.os_error, ConnectionRefusedError):
                raise _errs.ConnectionRefused(str(connector_error)) from connector_error
            raise _errs.TransportError(str(connector_error)) from connector_error
        except _ahttp.ClientError as client_error:
            raise _errs.TransportError(str(client_error)) from client_error

        if response.ok or _rth.is_json_content_type(response.content_type):
            return data

        raise _errs.HttpStatusError(response.status, response.reason)

    @_ctx.asynccontextmanager
    async def _session_scope(self) -> _cabc.AsyncIterator[_ahttp.ClientSession]:
        if self._session is not None:
            yield self._session
            return

        async with _ahttp.ClientSession() as session:
            yield session
