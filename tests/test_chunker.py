import asyncio

import pytest

from conftest import FakeUpstream
from getlogs_proxy.errors import JSONRPCError
from getlogs_proxy.logs.chunker import LogRangeChunker, iter_block_windows


def _window_logs(method, params):
    """One fake log per window, tagged with the window bounds."""
    log_filter = params[0]
    return [{"window": [log_filter["fromBlock"], log_filter["toBlock"]]}]


def test_windows_tile_range_without_gaps():
    assert list(iter_block_windows(0, 250_000, 100_000)) == [
        (0, 99_999),
        (100_000, 199_999),
        (200_000, 250_000),
    ]


def test_single_block_range_is_one_window():
    assert list(iter_block_windows(5, 5, 100_000)) == [(5, 5)]


def test_range_smaller_than_chunk_is_one_window():
    assert list(iter_block_windows(10, 500, 100_000)) == [(10, 500)]


def test_exact_multiple_of_chunk_size():
    assert list(iter_block_windows(0, 9, 5)) == [(0, 4), (5, 9)]


def test_windows_beyond_64_bit_range():
    start = 2**64 - 3
    windows = list(iter_block_windows(start, start + 6, 3))
    assert windows == [(start, start + 2), (start + 3, start + 5), (start + 6, start + 6)]


def test_windows_reject_non_positive_chunk_size():
    with pytest.raises(ValueError):
        list(iter_block_windows(0, 10, 0))


@pytest.mark.asyncio
async def test_chunks_are_requested_in_order_and_concatenated():
    upstream = FakeUpstream(handler=_window_logs)
    chunker = LogRangeChunker(upstream, chunk_size=100_000)

    result = await chunker.handle([{"fromBlock": "0x0", "toBlock": hex(250_000), "address": "0xabc", "topics": [None]}])

    sent = upstream.calls_for("eth_getLogs")
    assert [p[0]["fromBlock"] for p in sent] == ["0x0", "0x186a0", "0x30d40"]
    assert [p[0]["toBlock"] for p in sent] == ["0x1869f", "0x30d3f", "0x3d090"]
    for params in sent:
        assert params[0]["address"] == "0xabc"
        assert params[0]["topics"] == [None]
    assert result == [
        {"window": ["0x0", "0x1869f"]},
        {"window": ["0x186a0", "0x30d3f"]},
        {"window": ["0x30d40", "0x3d090"]},
    ]


@pytest.mark.asyncio
async def test_original_filter_is_not_mutated():
    upstream = FakeUpstream(handler=_window_logs)
    log_filter = {"fromBlock": 1, "toBlock": 30}
    await LogRangeChunker(upstream, chunk_size=10).handle([log_filter])
    assert log_filter == {"fromBlock": 1, "toBlock": 30}
    assert len(upstream.calls) == 3


@pytest.mark.asyncio
async def test_same_block_yields_single_window():
    upstream = FakeUpstream(handler=_window_logs)
    await LogRangeChunker(upstream, chunk_size=100_000).handle([{"fromBlock": 5, "toBlock": 5}])
    assert upstream.calls == [("eth_getLogs", [{"fromBlock": "0x5", "toBlock": "0x5"}])]


@pytest.mark.asyncio
async def test_inverted_range_fails_before_any_upstream_call():
    upstream = FakeUpstream(handler=_window_logs)
    with pytest.raises(JSONRPCError) as excinfo:
        await LogRangeChunker(upstream).handle([{"fromBlock": 10, "toBlock": 5}])
    assert excinfo.value.code == -32602
    assert upstream.calls == []


@pytest.mark.asyncio
async def test_block_hash_filter_is_forwarded_untouched():
    upstream = FakeUpstream(results={"eth_getLogs": [{"logIndex": "0x0"}]})
    log_filter = {"blockHash": "0x" + "ab" * 32, "fromBlock": "0x0", "toBlock": "0xffffffff"}

    result = await LogRangeChunker(upstream, chunk_size=10).handle([log_filter])

    assert result == [{"logIndex": "0x0"}]
    assert upstream.calls == [("eth_getLogs", [log_filter])]
    assert upstream.height_calls == 0


@pytest.mark.asyncio
async def test_symbolic_bound_forwards_filter_as_is():
    upstream = FakeUpstream(results={"eth_getLogs": []})
    log_filter = {"fromBlock": "0x1", "toBlock": "someday"}

    await LogRangeChunker(upstream, chunk_size=1).handle([log_filter])

    assert upstream.calls == [("eth_getLogs", [log_filter])]


@pytest.mark.asyncio
async def test_negative_block_number_forwards_filter_as_is():
    upstream = FakeUpstream(results={"eth_getLogs": []})
    log_filter = {"fromBlock": -5, "toBlock": 3}

    await LogRangeChunker(upstream, chunk_size=100).handle([log_filter])

    assert upstream.calls == [("eth_getLogs", [log_filter])]


@pytest.mark.asyncio
async def test_missing_bounds_default_to_block_zero():
    upstream = FakeUpstream(handler=_window_logs)
    await LogRangeChunker(upstream).handle([])
    assert upstream.calls == [("eth_getLogs", [{"fromBlock": "0x0", "toBlock": "0x0"}])]


@pytest.mark.asyncio
async def test_pending_resolves_through_live_height():
    upstream = FakeUpstream(handler=_window_logs, height=25)
    await LogRangeChunker(upstream, chunk_size=10).handle([{"fromBlock": "0x0", "toBlock": "pending"}])
    assert upstream.height_calls == 1
    assert [p[0]["toBlock"] for p in upstream.calls_for("eth_getLogs")] == ["0x9", "0x13", "0x19"]


@pytest.mark.asyncio
async def test_height_failure_fails_the_whole_call():
    upstream = FakeUpstream(handler=_window_logs)
    upstream.height_error = JSONRPCError(-32000, "upstream unavailable")
    with pytest.raises(JSONRPCError) as excinfo:
        await LogRangeChunker(upstream).handle([{"fromBlock": "pending"}])
    assert excinfo.value.message == "upstream unavailable"
    assert upstream.calls == []


@pytest.mark.asyncio
async def test_non_list_chunk_result_discards_partial_results():
    def handler(method, params):
        if params[0]["fromBlock"] == "0x0":
            return [{"logIndex": "0x0"}]
        return {"unexpected": True}

    upstream = FakeUpstream(handler=handler)
    with pytest.raises(JSONRPCError) as excinfo:
        await LogRangeChunker(upstream, chunk_size=10).handle([{"fromBlock": 0, "toBlock": 29}])

    assert excinfo.value.code == -32603
    assert excinfo.value.data == {"unexpected": True}
    # fails at the second window, the third is never requested
    assert len(upstream.calls) == 2


@pytest.mark.asyncio
async def test_chunk_failure_stops_iteration():
    def handler(method, params):
        if params[0]["fromBlock"] == "0xa":
            return JSONRPCError(-32005, "query returned more than 10000 results")
        return []

    upstream = FakeUpstream(handler=handler)
    with pytest.raises(JSONRPCError) as excinfo:
        await LogRangeChunker(upstream, chunk_size=10).handle([{"fromBlock": 0, "toBlock": 49}])
    assert excinfo.value.code == -32005
    assert len(upstream.calls) == 2


@pytest.mark.asyncio
async def test_chunks_never_overlap_in_flight():
    in_flight = 0
    peak = 0

    async def handler(method, params):
        nonlocal in_flight, peak
        in_flight += 1
        peak = max(peak, in_flight)
        await asyncio.sleep(0)
        in_flight -= 1
        return []

    upstream = FakeUpstream(handler=handler)
    await LogRangeChunker(upstream, chunk_size=1).handle([{"fromBlock": 0, "toBlock": 4}])
    assert peak == 1
    assert len(upstream.calls) == 5


@pytest.mark.asyncio
@pytest.mark.parametrize("params", [{"fromBlock": "0x0"}, "0x0"])
async def test_non_array_params_are_invalid(upstream, params):
    with pytest.raises(JSONRPCError) as excinfo:
        await LogRangeChunker(upstream).handle(params)
    assert excinfo.value.code == -32602


@pytest.mark.asyncio
async def test_non_object_filter_is_invalid(upstream):
    with pytest.raises(JSONRPCError) as excinfo:
        await LogRangeChunker(upstream).handle(["0x0"])
    assert excinfo.value.code == -32602
    assert upstream.calls == []
