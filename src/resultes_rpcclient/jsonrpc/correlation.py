import collections.abc as _cabc
import dataclasses as _dc
import logging as _log
import typing as _tp

import jsonrpcclient as _jrpcc
import pydantic as _pyd

import resultes_rpcclient.jsonrpc.errors as _errs
import resultes_rpcclient.jsonrpc.messages as _msgs
import resultes_rpcclient.jsonrpc.types as _tps

_LOGGER = _log.getLogger(__name__)


def check_response(
    request_id: _tps.RequestId, response: _msgs.Response
) -> _msgs.Outcome:
    if response.id != request_id:
        raise _errs.IdMismatch(request_id, response.id)

    return response.outcome


def unwrap[T](outcome: _msgs.Outcome, result_type: type[T] | None = None) -> T | _tps.Json:
    match outcome:
        case _jrpcc.Ok(result):
            if result_type is None:
                return result
            return validate_result(result, result_type)
        case _jrpcc.Error() as error:
            raise _errs.RpcError(error)
        case _:
            _tp.assert_never(_)


def validate_result[T](result: _tps.Json, result_type: type[T]) -> T:
    try:
        return _pyd.TypeAdapter(result_type).validate_python(result)
    except _pyd.ValidationError as validation_error:
        raise _errs.ResultValidationError(str(validation_error)) from validation_error


@_dc.dataclass(frozen=True)
class BatchResult(_cabc.Mapping[_tps.RequestId, _msgs.Outcome]):
    """
    Outcomes of a batch keyed by request id.

    `missing` holds the ids the server did not answer, `errors` the responses
    which could not be attributed to any request of the batch.
    """

    request_ids: tuple[_tps.RequestId, ...]
    outcomes: _cabc.Mapping[_tps.RequestId, _msgs.Outcome]
    missing: tuple[_tps.RequestId, ...] = ()
    errors: tuple[_errs.CorrelationError, ...] = ()

    def __getitem__(self, request_id: _tps.RequestId) -> _msgs.Outcome:
        return self.outcomes[request_id]

    def __iter__(self) -> _cabc.Iterator[_tps.RequestId]:
        return iter(self.outcomes)

    def __len__(self) -> int:
        return len(self.outcomes)

    @property
    def is_complete(self) -> bool:
        return not self.missing and not self.errors

    def in_request_order(self) -> list[_msgs.Outcome | None]:
        return [self.outcomes.get(i) for i in self.request_ids]

    def result[T](
        self, request_id: _tps.RequestId, result_type: type[T] | None = None
    ) -> T | _tps.Json:
        if request_id not in self.request_ids:
            raise KeyError(request_id)

        if request_id in self.missing:
            raise _errs.ProtocolError(f"No response for request {request_id!r}.")

        return unwrap(self.outcomes[request_id], result_type)


def correlate_batch(
    request_ids: _cabc.Sequence[_tps.RequestId],
    responses: _cabc.Sequence[_msgs.Response],
) -> BatchResult:
    if (
        len(responses) == 1
        and (response := responses[0]).id is None
        and response.error is not None
        and None not in request_ids
    ):
        # The server rejected the batch as a whole, e.g. because it could not parse it.
        raise _errs.RpcError(response.outcome)

    expected_ids = set(request_ids)
    outcomes = dict[_tps.RequestId, _msgs.Outcome]()
    errors = list[_errs.CorrelationError]()

    for response in responses:
        if response.id not in expected_ids:
            _LOGGER.debug("Got response with unknown id %r.", response.id)
            errors.append(_errs.UnknownResponseId(response.id))
        elif response.id in outcomes:
            _LOGGER.debug("Got duplicate response for id %r.", response.id)
            errors.append(_errs.DuplicateResponseId(response.id))
        else:
            outcomes[response.id] = response.outcome

    missing = tuple(i for i in request_ids if i not in outcomes)

    return BatchResult(tuple(request_ids), outcomes, missing, tuple(errors))
