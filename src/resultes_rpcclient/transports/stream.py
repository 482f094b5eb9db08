import collections.abc as _cabc
import contextlib as _ctx
import logging as _log
import re as _re
import socket as _socket

import resultes_rpcclient.jsonrpc.errors as _errs
import resultes_rpcclient.transports.http as _rth

_LOGGER = _log.getLogger(__name__)

DEFAULT_MAX_RESPONSE_SIZE = 16 * 1024 * 1024

_RECEIVE_SIZE = 64 * 1024
_SIGNIFICANT_BYTES = _re.compile(rb'[\\"{}\[\]]')


@_ctx.contextmanager
def translated_socket_errors(target: str) -> _cabc.Iterator[None]:
    try:
        yield
    except TimeoutError as timeout_error:
        raise _errs.TransportTimeout(f"Timed out talking to {target}.") from timeout_error
    except ConnectionRefusedError as refused_error:
        raise _errs.ConnectionRefused(f"Connection to {target} refused.") from refused_error
    except OSError as os_error:
        raise _errs.TransportError(
            f"I/O error talking to {target}: {os_error}"
        ) from os_error


def read_json_value(sock: _socket.socket, max_size: int) -> bytes:
    """
    Reads from `sock` until the received bytes hold one complete JSON object
    or array.

    Streams carry no message boundaries, so the end of the value is found by
    tracking nesting as bytes arrive; each byte is scanned once. If the peer
    closes the connection first, whatever was received is returned and left
    for the caller to reject.
    """
    scanner = JsonValueScanner()
    buffer = bytearray()

    while True:
        chunk = sock.recv(_RECEIVE_SIZE)
        if not chunk:
            if not buffer:
                raise _errs.TransportError("Connection closed without a response.")
            return bytes(buffer)

        start = len(buffer)
        buffer += chunk
        if len(buffer) > max_size:
            raise _errs.TransportError(
                f"Response exceeds the maximum size of {max_size} bytes."
            )

        if (end := scanner.feed(chunk)) is not None:
            return bytes(buffer[: start + end])


class JsonValueScanner:
    """
    Finds the end of a top-level JSON object or array fed in arbitrary pieces.

    Only quotes, backslashes and brackets are inspected. None of them can occur
    inside a multi-byte UTF-8 sequence, so pieces may split characters.
    """

    def __init__(self) -> None:
        self._offset = 0
        self._depth = 0
        self._in_string = False
        self._escaped_offset = -1

    def feed(self, chunk: bytes) -> int | None:
        """Returns the offset within `chunk` just past the end of the value."""
        for match in _SIGNIFICANT_BYTES.finditer(chunk):
            position = self._offset + match.start()
            if position == self._escaped_offset:
                continue

            token = match.group()
            if self._in_string:
                if token == b"\\":
                    self._escaped_offset = position + 1
                elif token == b'"':
                    self._in_string = False
            elif token == b'"':
                self._in_string = True
            elif token in (b"{", b"["):
                self._depth += 1
            elif token in (b"}", b"]"):
                self._depth -= 1
                if self._depth == 0:
                    return match.end()

        self._offset += len(chunk)
        return None


class TcpTransport:
    """
    Writes each payload to a fresh TCP connection and reads one JSON value back.

    A connection never carries more than one exchange, so concurrent
    exchanges cannot interleave.
    """

    def __init__(
        self,
        host: str,
        port: int,
        *,
        timeout: float | None = _rth.DEFAULT_TIMEOUT_SECONDS,
        max_response_size: int = DEFAULT_MAX_RESPONSE_SIZE,
    ) -> None:
        self._host = host
        self._port = port
        self._timeout = timeout
        self._max_response_size = max_response_size

    @property
    def target(self) -> str:
        return f"{self._host}:{self._port}"

    def exchange(self, payload: bytes) -> bytes:
        with translated_socket_errors(self.target), self._connect() as sock:
            sock.sendall(payload)
            return read_json_value(sock, self._max_response_size)

    def send(self, payload: bytes) -> None:
        with translated_socket_errors(self.target), self._connect() as sock:
            sock.sendall(payload)

    def _connect(self) -> _socket.socket:
        _LOGGER.debug("Connecting to %s.", self.target)
        return _socket.create_connection((self._host, self._port), timeout=self._timeout)


class UnixSocketTransport:
    def __init__(
        self,
        path: str,
        *,
        timeout: float | None = _rth.DEFAULT_TIMEOUT_SECONDS,
        max_response_size: int = DEFAULT_MAX_RESPONSE_SIZE,
    ) -> None:
        self._path = path
        self._timeout = timeout
        self._max_response_size = max_response_size

    @property
    def target(self) -> str:
        return self._path

    def exchange(self, payload: bytes) -> bytes:
        with translated_socket_errors(self.target), self._connect() as sock:
            sock.sendall(payload)
            return read_json_value(sock, self._max_response_size)

    def send(self, payload: bytes) -> None:
        with translated_socket_errors(self.target), self._connect() as sock:
            sock.sendall(payload)

    def _connect(self) -> _socket.socket:
        _LOGGER.debug("Connecting to %s.", self._path)

        sock = _socket.socket(_socket.AF_UNIX, _socket.SOCK_STREAM)
        try:
            sock.settimeout(self._timeout)
            sock.connect(self._path)
        except BaseException:
            sock.close()
            raise

        return sock
