import json

import jsonrpcclient
import pydantic
import pytest
from conftest import CannedTransport, OneWayCannedTransport

import resultes_rpcclient.jsonrpc.client as client
import resultes_rpcclient.jsonrpc.errors as errors
import resultes_rpcclient.jsonrpc.ids as ids


class Info(pydantic.BaseModel):
    version: int


def test_call_returns_result():
    transport = CannedTransport({"jsonrpc": "2.0", "id": 1, "result": {"version": 1}})
    rpc_client = client.Client(transport)

    result = rpc_client.call("getinfo", [])

    assert result == {"version": 1}
    assert transport.sent == [{"jsonrpc": "2.0", "method": "getinfo", "id": 1}]


def test_call_raises_rpc_error():
    transport = CannedTransport(
        {
            "jsonrpc": "2.0",
            "id": 1,
            "error": {"code": -32601, "message": "Method not found"},
        }
    )
    rpc_client = client.Client(transport)

    with pytest.raises(errors.RpcError) as exc_info:
        rpc_client.call("getinfo", [])

    assert exc_info.value.code == -32601
    assert exc_info.value.message == "Method not found"
    assert exc_info.value.kind == errors.ErrorKind.METHOD_NOT_FOUND


def test_send_request_returns_rpc_error_as_data():
    transport = CannedTransport(
        {
            "jsonrpc": "2.0",
            "id": 1,
            "error": {"code": 17, "message": "custom", "data": [1, 2]},
        }
    )
    rpc_client = client.Client(transport)

    outcome = rpc_client.send_request("anything")

    assert outcome == jsonrpcclient.Error(17, "custom", [1, 2], 1)


def test_call_detects_id_mismatch():
    transport = CannedTransport({"jsonrpc": "2.0", "id": 2, "result": {"version": 1}})
    rpc_client = client.Client(transport)

    with pytest.raises(errors.IdMismatch) as exc_info:
        rpc_client.call("getinfo", [])

    assert exc_info.value.expected == 1
    assert exc_info.value.actual == 2


def test_call_detects_id_type_mismatch():
    transport = CannedTransport({"jsonrpc": "2.0", "id": "1", "result": None})
    rpc_client = client.Client(transport)

    with pytest.raises(errors.IdMismatch):
        rpc_client.call("getinfo")


def test_call_raises_protocol_error_for_malformed_reply():
    transport = CannedTransport(b"<html>Bad gateway</html>")
    rpc_client = client.Client(transport)

    with pytest.raises(errors.MalformedResponse):
        rpc_client.call("getinfo")


def test_call_raises_protocol_error_for_result_and_error():
    transport = CannedTransport(
        {
            "jsonrpc": "2.0",
            "id": 1,
            "result": 1,
            "error": {"code": -32603, "message": "Internal error"},
        }
    )
    rpc_client = client.Client(transport)

    with pytest.raises(errors.InvalidEnvelope):
        rpc_client.call("getinfo")


def test_transport_error_is_not_retried():
    transport = CannedTransport(errors.ConnectionRefused("refused"), {"unused": True})
    rpc_client = client.Client(transport)

    with pytest.raises(errors.ConnectionRefused):
        rpc_client.call("getinfo")

    assert len(transport.payloads) == 1


def test_os_error_from_transport_becomes_transport_error():
    transport = CannedTransport(ConnectionRefusedError("refused"))
    rpc_client = client.Client(transport)

    with pytest.raises(errors.TransportError) as exc_info:
        rpc_client.call("getinfo")

    assert isinstance(exc_info.value.__cause__, ConnectionRefusedError)


def test_invalid_params_are_rejected_before_io():
    transport = CannedTransport()
    rpc_client = client.Client(transport)

    with pytest.raises(errors.InvalidParams):
        rpc_client.call("getinfo", "not params")

    assert transport.payloads == []


def test_call_validates_result_type():
    transport = CannedTransport(
        {"jsonrpc": "2.0", "id": 1, "result": {"version": 3}},
        {"jsonrpc": "2.0", "id": 2, "result": {"version": "three"}},
    )
    rpc_client = client.Client(transport)

    assert rpc_client.call("getinfo", result_type=Info) == Info(version=3)

    with pytest.raises(errors.ResultValidationError):
        rpc_client.call("getinfo", result_type=Info)


def test_ids_are_distinct_across_calls(dispatching_transport):
    rpc_client = client.Client(dispatching_transport)

    for expected in range(1, 6):
        assert rpc_client.call("add", [expected, 1]) == expected + 1

    assert dispatching_transport.exchanges == 5


def test_calls_against_dispatching_server(dispatching_transport):
    rpc_client = client.Client(dispatching_transport, ids.IdGenerator.create("uuid"))

    assert rpc_client.call("getinfo") == {"version": 1}
    assert rpc_client.call("echo", {"a": 1}) == {"a": 1}

    with pytest.raises(errors.RpcError) as exc_info:
        rpc_client.call("missing")
    assert exc_info.value.kind == errors.ErrorKind.METHOD_NOT_FOUND

    with pytest.raises(errors.RpcError) as exc_info:
        rpc_client.call("fail")
    assert exc_info.value.data == {"reason": "testing"}
    assert exc_info.value.kind == errors.ErrorKind.SERVER_ERROR


def test_call_batch_correlates_by_id_regardless_of_order():
    transport = CannedTransport(
        [
            {"jsonrpc": "2.0", "id": 3, "result": "three"},
            {"jsonrpc": "2.0", "id": 1, "result": "one"},
            {"jsonrpc": "2.0", "id": 2, "result": "two"},
        ]
    )
    rpc_client = client.Client(transport)

    batch = rpc_client.call_batch([("a", None), ("b", [2]), ("c", {"x": 3})])

    assert batch.request_ids == (1, 2, 3)
    assert batch.result(1) == "one"
    assert batch.result(2) == "two"
    assert batch.result(3) == "three"
    assert batch.in_request_order() == [
        jsonrpcclient.Ok("one", 1),
        jsonrpcclient.Ok("two", 2),
        jsonrpcclient.Ok("three", 3),
    ]
    assert batch.is_complete
    assert [r["method"] for r in transport.sent[0]] == ["a", "b", "c"]


def test_call_batch_reports_errors_per_entry(dispatching_transport):
    rpc_client = client.Client(dispatching_transport)

    batch = rpc_client.call_batch([("add", [1, 2]), ("missing", None), ("getinfo", None)])

    assert dispatching_transport.exchanges == 1
    assert batch.result(1) == 3
    assert isinstance(batch[2], jsonrpcclient.Error)
    assert batch[2].code == -32601
    with pytest.raises(errors.RpcError):
        batch.result(2)
    assert batch.result(3) == {"version": 1}


def test_call_batch_keeps_recognized_entries_next_to_unknown_ids():
    transport = CannedTransport(
        [
            {"jsonrpc": "2.0", "id": 1, "result": "one"},
            {"jsonrpc": "2.0", "id": 99, "result": "stray"},
            {"jsonrpc": "2.0", "id": 1, "result": "again"},
        ]
    )
    rpc_client = client.Client(transport)

    batch = rpc_client.call_batch([("a", None), ("b", None)])

    assert batch.result(1) == "one"
    assert batch.missing == (2,)
    assert not batch.is_complete
    assert [type(e) for e in batch.errors] == [
        errors.UnknownResponseId,
        errors.DuplicateResponseId,
    ]
    assert batch.errors[0].response_id == 99
    with pytest.raises(errors.ProtocolError):
        batch.result(2)
    with pytest.raises(KeyError):
        batch.result(99)


def test_call_batch_accepts_lone_response_for_single_call():
    transport = CannedTransport({"jsonrpc": "2.0", "id": 1, "result": "only"})
    rpc_client = client.Client(transport)

    batch = rpc_client.call_batch([("a", None)])

    assert dict(batch) == {1: jsonrpcclient.Ok("only", 1)}


def test_call_batch_raises_when_whole_batch_is_rejected():
    transport = CannedTransport(
        {"jsonrpc": "2.0", "id": None, "error": {"code": -32700, "message": "Parse error"}}
    )
    rpc_client = client.Client(transport)

    with pytest.raises(errors.RpcError) as exc_info:
        rpc_client.call_batch([("a", None), ("b", None)])

    assert exc_info.value.kind == errors.ErrorKind.PARSE_ERROR


def test_empty_batch_is_rejected_without_io():
    transport = CannedTransport()
    rpc_client = client.Client(transport)

    with pytest.raises(errors.EmptyBatch):
        rpc_client.call_batch([])

    assert transport.payloads == []


def test_batch_and_calls_share_the_id_sequence():
    transport = CannedTransport(
        {"jsonrpc": "2.0", "id": 1, "result": None},
        [
            {"jsonrpc": "2.0", "id": 2, "result": None},
            {"jsonrpc": "2.0", "id": 3, "result": None},
        ],
        {"jsonrpc": "2.0", "id": 4, "result": None},
    )
    rpc_client = client.Client(transport)

    rpc_client.call("a")
    rpc_client.call_batch([("b", None), ("c", None)])
    rpc_client.call("d")

    first, batch, last = transport.sent
    assert first["id"] == 1
    assert [r["id"] for r in batch] == [2, 3]
    assert last["id"] == 4


def test_notify_uses_one_way_delivery_when_available():
    transport = OneWayCannedTransport()
    rpc_client = client.Client(transport)

    rpc_client.notify("log", {"message": "hello"})

    assert transport.payloads == []
    assert json.loads(transport.one_way_payloads[0]) == {
        "jsonrpc": "2.0",
        "method": "log",
        "params": {"message": "hello"},
    }


def test_notify_discards_reply_of_exchange(dispatching_transport):
    rpc_client = client.Client(dispatching_transport)

    assert rpc_client.notify("add", [1, 2]) is None
    assert dispatching_transport.exchanges == 1
