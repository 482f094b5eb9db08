import enum as _enum
import typing as _tp

import jsonrpcclient as _jrpcc
import jsonrpcserver.codes as _jrpcsc

import resultes_rpcclient.jsonrpc.types as _tps

_RESERVED_CODES_MIN = -32768
_RESERVED_CODES_MAX = -32000
_SERVER_ERROR_CODES_MIN = -32099
_SERVER_ERROR_CODES_MAX = _jrpcsc.ERROR_SERVER_ERROR


class ErrorKind(_enum.Enum):
    PARSE_ERROR = "parse error"
    INVALID_REQUEST = "invalid request"
    METHOD_NOT_FOUND = "method not found"
    INVALID_PARAMS = "invalid params"
    INTERNAL_ERROR = "internal error"
    SERVER_ERROR = "server error"
    RESERVED = "reserved"
    APPLICATION = "application"

    @property
    def is_reserved(self) -> bool:
        return self != ErrorKind.APPLICATION


_KINDS_BY_CODE = {
    _jrpcsc.ERROR_PARSE_ERROR: ErrorKind.PARSE_ERROR,
    _jrpcsc.ERROR_INVALID_REQUEST: ErrorKind.INVALID_REQUEST,
    _jrpcsc.ERROR_METHOD_NOT_FOUND: ErrorKind.METHOD_NOT_FOUND,
    _jrpcsc.ERROR_INVALID_PARAMS: ErrorKind.INVALID_PARAMS,
    _jrpcsc.ERROR_INTERNAL_ERROR: ErrorKind.INTERNAL_ERROR,
}


def classify_error_code(code: int) -> ErrorKind:
    if kind := _KINDS_BY_CODE.get(code):
        return kind

    if _SERVER_ERROR_CODES_MIN <= code <= _SERVER_ERROR_CODES_MAX:
        return ErrorKind.SERVER_ERROR

    if _RESERVED_CODES_MIN <= code <= _RESERVED_CODES_MAX:
        return ErrorKind.RESERVED

    return ErrorKind.APPLICATION


class ClientError(Exception):
    """Base class of everything `Client` and `AsyncClient` raise."""


class TransportError(ClientError):
    """The channel failed: the request may or may not have reached the server."""


class TransportTimeout(TransportError):
    pass


class ConnectionRefused(TransportError):
    pass


class HttpStatusError(TransportError):
    def __init__(self, status: int, reason: str | None = None) -> None:
        super().__init__(f"HTTP status {status}: {reason or 'no reason given'}.")
        self.status = status
        self.reason = reason


class ProtocolError(ClientError):
    pass


class MalformedResponse(ProtocolError):
    pass


class InvalidEnvelope(MalformedResponse):
    pass


class ResultValidationError(ProtocolError):
    pass


class CorrelationError(ProtocolError):
    pass


class IdMismatch(CorrelationError):
    def __init__(self, expected: _tps.RequestId, actual: _tps.RequestId) -> None:
        super().__init__(f"Expected response for request {expected!r}, got {actual!r}.")
        self.expected = expected
        self.actual = actual


class UnknownResponseId(CorrelationError):
    def __init__(self, response_id: _tps.RequestId) -> None:
        super().__init__(f"Response id {response_id!r} matches no request of the batch.")
        self.response_id = response_id


class DuplicateResponseId(CorrelationError):
    def __init__(self, response_id: _tps.RequestId) -> None:
        super().__init__(f"Got more than one response for request {response_id!r}.")
        self.response_id = response_id


class RpcError(ClientError):
    """
    A well-formed error response. The server's error object is kept verbatim
    in `error`, `kind` tells where its code lies within the reserved band.
    """

    def __init__(self, error: _jrpcc.Error) -> None:
        super().__init__(f"{error.message} ({error.code})")
        self.error = error

    @property
    def code(self) -> int:
        return self.error.code

    @property
    def message(self) -> str:
        return self.error.message

    @property
    def data(self) -> _tp.Any:
        return self.error.data

    @property
    def kind(self) -> ErrorKind:
        return classify_error_code(self.error.code)


class InvalidParams(ClientError, ValueError):
    pass


class EmptyBatch(ClientError, ValueError):
    def __init__(self) -> None:
        super().__init__("A batch must contain at least one call.")


class InvalidCookieFile(ClientError):
    pass
