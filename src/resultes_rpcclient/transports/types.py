import typing as _tp


@_tp.runtime_checkable
class Transport(_tp.Protocol):
    """
    Delivers one request payload and returns the reply payload.

    Implementations acquire and release whatever channel they need within
    `exchange` and report failures as `TransportError`.
    """

    def exchange(self, payload: bytes) -> bytes: ...


@_tp.runtime_checkable
class OneWayTransport(Transport, _tp.Protocol):
    def send(self, payload: bytes) -> None: ...


@_tp.runtime_checkable
class AsyncTransport(_tp.Protocol):
    async def exchange(self, payload: bytes) -> bytes: ...


@_tp.runtime_checkable
class AsyncOneWayTransport(AsyncTransport, _tp.Protocol):
    async def send(self, payload: bytes) -> None: ...
