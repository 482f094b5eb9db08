import logging as _log
import socket as _socket

import python_socks as _pysocks
import python_socks.sync as _pysockss

import resultes_rpcclient.jsonrpc.errors as _errs
import resultes_rpcclient.transports.http as _rth
import resultes_rpcclient.transports.stream as _rts

_LOGGER = _log.getLogger(__name__)


class Socks5Transport:
    """
    A raw stream transport whose connection is tunnelled through a SOCKS5
    proxy. The target host name is resolved by the proxy.
    """

    def __init__(
        self,
        proxy_host: str,
        proxy_port: int,
        host: str,
        port: int,
        *,
        proxy_username: str | None = None,
        proxy_password: str | None = None,
        timeout: float | None = _rth.DEFAULT_TIMEOUT_SECONDS,
        max_response_size: int = _rts.DEFAULT_MAX_RESPONSE_SIZE,
    ) -> None:
        self._proxy = _pysockss.Proxy(
            proxy_type=_pysocks.ProxyType.SOCKS5,
            host=proxy_host,
            port=proxy_port,
            username=proxy_username,
            password=proxy_password,
            rdns=True,
        )
        self._proxy_target = f"{proxy_host}:{proxy_port}"
        self._host = host
        self._port = port
        self._timeout = timeout
        self._max_response_size = max_response_size

    @property
    def target(self) -> str:
        return f"{self._host}:{self._port} via {self._proxy_target}"

    def exchange(self, payload: bytes) -> bytes:
        with _rts.translated_socket_errors(self.target), self._connect() as sock:
            sock.sendall(payload)
            return _rts.read_json_value(sock, self._max_response_size)

    def send(self, payload: bytes) -> None:
        with _rts.translated_socket_errors(self.target), self._connect() as sock:
            sock.sendall(payload)

    def _connect(self) -> _socket.socket:
        _LOGGER.debug("Connecting to %s.", self.target)

        try:
            sock = self._proxy.connect(
                dest_host=self._host, dest_port=self._port, timeout=self._timeout
            )
        except _pysocks.ProxyTimeoutError as timeout_error:
            raise _errs.TransportTimeout(
                f"Timed out connecting to {self.target}."
            ) from timeout_error
        except _pysocks.ProxyConnectionError as connection_error:
            raise _errs.ConnectionRefused(
                f"Could not connect to proxy {self._proxy_target}: {connection_error}"
            ) from connection_error
        except _pysocks.ProxyError as proxy_error:
            raise _errs.TransportError(
                f"Proxy {self._proxy_target} failed to connect to "
                f"{self._host}:{self._port}: {proxy_error}"
            ) from proxy_error

        sock.settimeout(self._timeout)
        return sock
