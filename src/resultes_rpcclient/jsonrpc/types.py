import collections.abc as _cabc
import typing as _tp

type JsonScalar = bool | int | float | str | None
type JsonObject = _cabc.Mapping[str, "Json"]
type JsonStructured = _cabc.Sequence["Json"] | JsonObject
type Json = JsonScalar | JsonStructured

type RequestId = int | str | None

type Params = _cabc.Sequence[Json] | _cabc.Mapping[str, Json]
type ConvertedParams = list[Json] | dict[str, Json]


class RequestBase(_tp.TypedDict):
    jsonrpc: _tp.Literal["2.0"]
    method: str
    params: _tp.NotRequired[ConvertedParams]


class Request(RequestBase):
    id: RequestId


class Notification(RequestBase):
    pass


type Call = tuple[str, Params | None]
