"""Fake transports and servers shared by the tests."""

import json
import socket
import threading
from collections.abc import Callable, Iterator

import jsonrpcserver
import pytest
from jsonrpcserver import Error, Result, Success


class CannedTransport:
    """Replies with canned payloads in order and records what was sent."""

    def __init__(self, *replies):
        self._replies = list(replies)
        self.payloads: list[bytes] = []

    def exchange(self, payload: bytes) -> bytes:
        self.payloads.append(payload)
        reply = self._replies.pop(0)
        if isinstance(reply, BaseException):
            raise reply
        if isinstance(reply, (dict, list)):
            return json.dumps(reply).encode()
        if isinstance(reply, str):
            return reply.encode()
        return reply

    @property
    def sent(self) -> list:
        return [json.loads(p) for p in self.payloads]


class OneWayCannedTransport(CannedTransport):
    def __init__(self, *replies):
        super().__init__(*replies)
        self.one_way_payloads: list[bytes] = []

    def send(self, payload: bytes) -> None:
        self.one_way_payloads.append(payload)


def _add(a, b) -> Result:
    return Success(a + b)


def _echo(**kwargs) -> Result:
    return Success(kwargs)


def _getinfo() -> Result:
    return Success({"version": 1})


def _fail() -> Result:
    return Error(-32000, "Something failed", {"reason": "testing"})


METHODS = {"add": _add, "echo": _echo, "getinfo": _getinfo, "fail": _fail}


class DispatchingTransport:
    """Hands each payload to an in-process jsonrpcserver."""

    def __init__(self):
        self.exchanges = 0

    def exchange(self, payload: bytes) -> bytes:
        self.exchanges += 1
        return jsonrpcserver.dispatch(payload.decode(), methods=METHODS).encode()


def serve_json_rpc_over_socket(conn: socket.socket) -> None:
    """Reads one JSON value, answers it and closes the connection."""
    decoder = json.JSONDecoder()
    buffer = b""
    with conn:
        while True:
            chunk = conn.recv(4096)
            if not chunk:
                return
            buffer += chunk
            try:
                decoder.raw_decode(buffer.decode())
            except ValueError:
                continue
            break
        reply = jsonrpcserver.dispatch(buffer.decode(), methods=METHODS)
        # Dribble the reply to exercise reassembly on the client side.
        data = reply.encode()
        for start in range(0, len(data), 7):
            conn.sendall(data[start : start + 7])


class SocketServer:
    def __init__(self, listener: socket.socket, handler: Callable[[socket.socket], None]):
        self._listener = listener
        self._handler = handler
        self._thread = threading.Thread(target=self._serve, daemon=True)
        self.received_connections = 0

    def start(self) -> None:
        self._thread.start()

    def _serve(self) -> None:
        while True:
            try:
                conn, _ = self._listener.accept()
            except OSError:
                return
            self.received_connections += 1
            threading.Thread(target=self._handler, args=(conn,), daemon=True).start()

    def close(self) -> None:
        self._listener.close()


@pytest.fixture
def dispatching_transport() -> DispatchingTransport:
    return DispatchingTransport()


@pytest.fixture
def tcp_server() -> Iterator[tuple[str, int]]:
    listener = socket.create_server(("127.0.0.1", 0))
    server = SocketServer(listener, serve_json_rpc_over_socket)
    server.start()
    yield listener.getsockname()[:2]
    server.close()


@pytest.fixture
def unused_tcp_address() -> tuple[str, int]:
    with socket.create_server(("127.0.0.1", 0)) as listener:
        return listener.getsockname()[:2]
