import collections.abc as _cabc
import threading as _th
import typing as _tp

import jsonrpcclient.id_generators as _jrpcci

import resultes_rpcclient.jsonrpc.types as _tps

IdScheme = _tp.Literal["decimal", "hexadecimal", "uuid"]

_ID_ITERATOR_FACTORIES: _cabc.Mapping[
    str, _cabc.Callable[[], _cabc.Iterator[_tps.RequestId]]
] = {
    "decimal": _jrpcci.decimal,
    "hexadecimal": _jrpcci.hexadecimal,
    "uuid": _jrpcci.uuid,
}


class IdGenerator:
    """
    Hands out request ids which are unique for the lifetime of the instance.

    Safe to share between threads: drawing ids is serialized by a lock, and a
    batch draws all of its ids under one acquisition.
    """

    def __init__(self, ids: _cabc.Iterator[_tps.RequestId] | None = None) -> None:
        self._ids = ids if ids is not None else _jrpcci.decimal()
        self._lock = _th.Lock()

    @classmethod
    def create(cls, scheme: IdScheme = "decimal") -> _tp.Self:
        try:
            factory = _ID_ITERATOR_FACTORIES[scheme]
        except KeyError:
            raise ValueError(f"Unknown id scheme {scheme!r}.") from None

        return cls(factory())

    def next(self) -> _tps.RequestId:
        with self._lock:
            return next(self._ids)

    def take(self, count: int) -> list[_tps.RequestId]:
        with self._lock:
            request_ids = [next(self._ids) for _ in range(count)]

        if len(set(request_ids)) != len(request_ids):
            raise RuntimeError("Id generator produced duplicate ids.")

        return request_ids

    def __iter__(self) -> _cabc.Iterator[_tps.RequestId]:
        return self

    def __next__(self) -> _tps.RequestId:
        return self.next()
