import collections.abc as _cabc
import json as _json
import typing as _tp

import jsonrpcclient as _jrpcc
import pydantic as _pyd

import resultes_rpcclient.jsonrpc.errors as _errs
import resultes_rpcclient.jsonrpc.types as _tps

type Outcome = _jrpcc.Ok | _jrpcc.Error

_ENCODING = "utf-8"


class ErrorObject(_pyd.BaseModel):
    model_config = _pyd.ConfigDict(frozen=True)

    code: _pyd.StrictInt
    message: _pyd.StrictStr
    data: _tp.Any = None

    @property
    def kind(self) -> _errs.ErrorKind:
        return _errs.classify_error_code(self.code)


class Response(_pyd.BaseModel):
    """
    A validated response envelope.

    Exactly one of `result` and `error` is present. A `result` of `null` is a
    legitimate result, an `error` of `null` counts as absent. Build instances
    with `create`, which reports violations as `InvalidEnvelope`; calling the
    constructor directly raises pydantic's `ValidationError` instead.
    """

    model_config = _pyd.ConfigDict(frozen=True)

    jsonrpc: _tp.Literal["2.0"]
    id: _pyd.StrictInt | _pyd.StrictStr | None
    result: _tp.Any = None
    error: ErrorObject | None = None

    @_pyd.model_validator(mode="after")
    def _check_exactly_one_of_result_and_error(self) -> _tp.Self:
        has_result = "result" in self.model_fields_set
        has_error = self.error is not None

        if has_result and has_error:
            raise ValueError("Both `result` and `error` are present.")
        if not has_result and not has_error:
            raise ValueError("Neither `result` nor `error` is present.")

        return self

    @classmethod
    def create(cls, /, **fields: _tp.Any) -> _tp.Self:
        try:
            return cls.model_validate(fields)
        except _pyd.ValidationError as validation_error:
            raise _errs.InvalidEnvelope(str(validation_error)) from validation_error

    @property
    def outcome(self) -> Outcome:
        if self.error is not None:
            return _jrpcc.Error(
                code=self.error.code,
                message=self.error.message,
                data=self.error.data,
                id=self.id,
            )

        return _jrpcc.Ok(result=self.result, id=self.id)


class _RequestEnvelope(_pyd.BaseModel):
    jsonrpc: _tp.Literal["2.0"]
    method: _pyd.StrictStr
    params: list[_tp.Any] | dict[str, _tp.Any] | None = None
    id: _pyd.StrictInt | _pyd.StrictStr | None = None


def convert_params(params: _tps.Params | None) -> _tps.ConvertedParams | None:
    """
    Pick the one representation a call's params are sent in: a mapping is sent
    by-name, any other sequence by-position. Anything else (strings, sets,
    iterators, mappings with non-string keys) is ambiguous and rejected.
    """
    if params is None:
        return None

    if isinstance(params, _cabc.Mapping):
        if not all(isinstance(k, str) for k in params):
            raise _errs.InvalidParams("Named params must have string keys.")
        return dict(params)

    if isinstance(params, (str, bytes, bytearray)):
        raise _errs.InvalidParams(
            f"Params must be a sequence or a mapping, not {type(params).__name__}."
        )

    if isinstance(params, _cabc.Sequence):
        return list(params)

    raise _errs.InvalidParams(
        f"Params must be a sequence or a mapping, not {type(params).__name__}."
    )


def build_request(
    method: str, params: _tps.Params | None, request_id: _tps.RequestId
) -> _tps.Request:
    converted_params = convert_params(params)

    request: _tps.Request = _jrpcc.request(
        method=method, params=converted_params, id=request_id
    )
    return request


def build_notification(
    method: str, params: _tps.Params | None = None
) -> _tps.Notification:
    converted_params = convert_params(params)

    notification: _tps.Notification = _jrpcc.notification(
        method=method, params=converted_params
    )
    return notification


def serialize(message: _tps.Request | _tps.Notification) -> bytes:
    return _json.dumps(message).encode(_ENCODING)


def encode_batch(requests: _cabc.Sequence[_tps.Request]) -> bytes:
    if not requests:
        raise _errs.EmptyBatch()

    return _json.dumps(list(requests)).encode(_ENCODING)


def parse_request(raw: bytes | str) -> _tps.Request | _tps.Notification:
    data = _decode_json(raw)

    if not isinstance(data, dict):
        raise _errs.InvalidEnvelope("A request must be a JSON object.")

    try:
        _RequestEnvelope.model_validate(data)
    except _pyd.ValidationError as validation_error:
        raise _errs.InvalidEnvelope(str(validation_error)) from validation_error

    request: _tps.Request | _tps.Notification = data
    return request


def parse_response(raw: bytes | str) -> Response:
    data = _decode_json(raw)

    if isinstance(data, list):
        raise _errs.InvalidEnvelope("Expected a single response, got a batch.")

    return _validate_response(data)


def decode_batch_response(raw: bytes | str) -> list[Response]:
    """
    Accepts an array of responses, or a lone response object which some
    servers send for single-member batches and for batch-wide failures.
    """
    data = _decode_json(raw)

    if isinstance(data, dict):
        return [_validate_response(data)]

    if not isinstance(data, list):
        raise _errs.InvalidEnvelope(
            f"Expected an array of responses, got {type(data).__name__}."
        )

    responses = list[Response]()
    for index, entry in enumerate(data):
        try:
            responses.append(_validate_response(entry))
        except _errs.InvalidEnvelope as invalid_envelope:
            raise _errs.InvalidEnvelope(
                f"Batch entry {index} is invalid: {invalid_envelope}"
            ) from invalid_envelope

    return responses


def _decode_json(raw: bytes | str) -> _tp.Any:
    try:
        return _json.loads(raw)
    except ValueError as value_error:
        raise _errs.MalformedResponse(
            f"Could not decode JSON: {value_error}"
        ) from value_error


def _validate_response(data: _tp.Any) -> Response:
    if not isinstance(data, dict):
        raise _errs.InvalidEnvelope(
            f"A response must be a JSON object, got {type(data).__name__}."
        )

    return Response.create(**data)
