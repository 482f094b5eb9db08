import asyncio as _asyncio
import concurrent.futures as _cf

import resultes_rpcclient.transports.types as _rtt


class ExecutorTransport:
    """Makes a blocking transport usable from an `AsyncClient`."""

    def __init__(
        self, transport: _rtt.Transport, executor: _cf.Executor | None = None
    ) -> None:
        self._transport = transport
        self._executor = executor

    async def exchange(self, payload: bytes) -> bytes:
        loop = _asyncio.get_running_loop()
        return await loop.run_in_executor(
            self._executor, self._transport.exchange, payload
        )

    async def send(self, payload: bytes) -> None:
        loop = _asyncio.get_running_loop()
        if isinstance(self._transport, _rtt.OneWayTransport):
            await loop.run_in_executor(self._executor, self._transport.send, payload)
        else:
            await loop.run_in_executor(
                self._executor, self._transport.exchange, payload
            )
