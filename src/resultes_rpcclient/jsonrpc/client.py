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


class Client:
    """
    Blocking JSON-RPC 2.0 client over any `Transport`.

    Each call performs exactly one exchange and is never retried. The client
    may be shared between threads if its transport allows concurrent
    exchanges.
    """

    def __init__(
        self,
        transport: _rtt.Transport,
        id_generator: _ids.IdGenerator | None = None,
    ) -> None:
        self._transport = transport
        self._id_generator = id_generator or _ids.IdGenerator()

    @_tp.overload
    def call(
        self, method: str, params: _tps.Params | None = None, *, result_type: None = None
    ) -> _tps.Json: ...

    @_tp.overload
    def call[T](
        self, method: str, params: _tps.Params | None = None, *, result_type: type[T]
    ) -> T: ...

    def call[T](
        self,
        method: str,
        params: _tps.Params | None = None,
        *,
        result_type: type[T] | None = None,
    ) -> T | _tps.Json:
        outcome = self.send_request(method, params)
        return _corr.unwrap(outcome, result_type)

    def send_request(
        self, method: str, params: _tps.Params | None = None
    ) -> _msgs.Outcome:
        request_id = self._id_generator.next()
        request = _msgs.build_request(method, params, request_id)

        payload = _msgs.serialize(request)

        _LOGGER.debug("Sending request %s.", payload)
        data = self._exchange(payload)

        response = _msgs.parse_response(data)
        _LOGGER.debug("Got response %s.", response)

        outcome = _corr.check_response(request_id, response)
        if isinstance(outcome, _jrpcc.Error):
            _LOGGER.debug("Response error for %s: %s", method, outcome)

        return outcome

    def call_batch(self, calls: _cabc.Sequence[_tps.Call]) -> _corr.BatchResult:
        if not calls:
            raise _errs.EmptyBatch()

        request_ids = self._id_generator.take(len(calls))
        requests = [
            _msgs.build_request(method, params, request_id)
            for (method, params), request_id in zip(calls, request_ids, strict=True)
        ]

        payload = _msgs.encode_batch(requests)

        _LOGGER.debug("Sending batch %s.", payload)
        data = self._exchange(payload)

        responses = _msgs.decode_batch_response(data)
        _LOGGER.debug("Got %d responses to batch of %d.", len(responses), len(calls))

        return _corr.correlate_batch(request_ids, responses)

    def notify(self, method: str, params: _tps.Params | None = None) -> None:
        notification = _msgs.build_notification(method, params)

        payload = _msgs.serialize(notification)

        _LOGGER.debug("Sending notification %s.", payload)
        if isinstance(self._transport, _rtt.OneWayTransport):
            self._send(self._transport, payload)
        else:
            self._exchange(payload)

    def _exchange(self, payload: bytes) -> bytes:
        try:
            return self._transport.exchange(payload)
        except _errs.TransportError:
            raise
        except OSError as os_error:
            raise _errs.TransportError(str(os_error)) from os_error

    @staticmethod
    def _send(transport: _rtt.OneWayTransport, payload: bytes) -> None:
        try:
            transport.send(payload)
        except _errs.TransportError:
            raise
        except OSError as os_error:
            raise _errs.TransportError(str(os_error)) from os_error
