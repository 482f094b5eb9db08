import collections.abc as _cabc
import logging as _log
import typing as _tp

import jsonrpcclient as _jrpcc

import resultes_rpcclient.jsonrpc.correlation as _corr
import resultes_rpcclient.jsonrpc.errors as _errs
import resultes_rpcclient.jsonrpc.ids as _ids
import resultes_rpcclient.jsonrpc.messages as _msgs
import resultes_rpcclient.jsonrpc.types as _tps
import resultes_rpcclient.transports.types as _rtt

_LOGGER = _log.getLogger(__name__)


class AsyncClient:
    def __init__(
        self,
        transport: _rtt.AsyncTransport,
        id_generator: _ids.IdGenerator | None = None,
    ) -> None:
        self._transport = transport
        self._id_generator = id_generator or _ids.IdGenerator()

    @_tp.overload
    async def call(
        self, method: str, params: _tps.Params | None = None, *, result_type: None = None
    ) -> _tps.Json: ...

    @_tp.overload
    async def call[T](
        self, method: str, params: _tps.Params | None = None, *, result_type: type[T]
    ) -> T: ...

    async def call[T](
        self,
        method: str,
        params: _tps.Params | None = None,
        *,
        result_type: type[T] | None = None,
    ) -> T | _tps.Json:
        outcome = await self.send_request(method, params)
        return _corr.unwrap(outcome, result_type)

    async def send_request(
        self, method: str, params: _tps.Params | None = None
    ) -> _msgs.Outcome:
        request_id = self._id_generator.next()
        request = _msgs.build_request(method, params, request_id)

        payload = _msgs.serialize(request)

        _LOGGER.debug("Sending request %s.", payload)
        data = await self._exchange(payload)

        response = _msgs.parse_response(data)
        _LOGGER.debug("Got response %s.", response)

        outcome = _corr.check_response(request_id, response)
        if isinstance(outcome, _jrpcc.Error):
            _LOGGER.debug("Response error for %s: %s", method, outcome)

        return outcome

    async def call_batch(
        self, calls: _cabc.Sequence[_tps.Call]
    ) -> _corr.BatchResult:
        if not calls:
            raise _errs.EmptyBatch()

        request_ids = self._id_generator.take(len(calls))
        requests = [
            _msgs.build_request(method, params, request_id)
            for (method, params), request_id in zip(calls, request_ids, strict=True)
        ]

        payload = _msgs.encode_batch(requests)

        _LOGGER.debug("Sending batch %s.", payload)
        data = await self._exchange(payload)

        responses = _msgs.decode_batch_response(data)
        _LOGGER.debug("Got %d responses to batch of %d.", len(responses), len(calls))

        return _corr.correlate_batch(request_ids, responses)

    async def notify(self, method: str, params: _tps.Params | None = None) -> None:
        notification = _msgs.build_notification(method, params)

        payload = _msgs.serialize(notification)

        _LOGGER.debug("Sending notification %s.", payload)
        if isinstance(self._transport, _rtt.AsyncOneWayTransport):
            await self._send(self._transport, payload)
        else:
            await self._exchange(payload)

    async def _exchange(self, payload: bytes) -> bytes:
        try:
            return await self._transport.exchange(payload)
        except _errs.TransportError:
            raise
        except OSError as os_error:
            raise _errs.TransportError(str(os_error)) from os_error

    @staticmethod
    async def _send(transport: _rtt.AsyncOneWayTransport, payload: bytes) -> None:
        try:
            await transport.send(payload)
        except _errs.TransportError:
            raise
        except OSError as os_error:
            raise _errs.TransportError(str(os_error)) from os_error
