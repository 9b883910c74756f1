"""Two real nodes talking over loopback websockets."""

import asyncio
import time

from ledger_node.config import NodeSettings
from ledger_node.node import LedgerNode


async def _wait_for(predicate, timeout=5.0):
    deadline = time.monotonic() + timeout
    while not predicate():
        if time.monotonic() > deadline:
            raise AssertionError("condition not reached before timeout")
        await asyncio.sleep(0.02)


def _local_node():
    return LedgerNode(NodeSettings(p2p_host="127.0.0.1", p2p_port=0))


def test_nodes_converge_over_websockets():
    async def scenario():
        a, b = _local_node(), _local_node()
        await a.start()
        await b.start()
        try:
            a.mine("first")
            a.mine("second")

            # b is behind by two blocks: tip exchange, QUERY_ALL, then replace
            b.add_peers([f"ws://127.0.0.1:{a.links.port}"])
            await _wait_for(lambda: len(b.store) == 3)
            assert b.store.snapshot() == a.store.snapshot()
            await _wait_for(lambda: len(a.links) == 1)

            # new tip on b is spliced onto a
            b.mine("third")
            await _wait_for(lambda: len(a.store) == 4)
            assert a.store.tail() == b.store.tail()
            assert b.links.peers() == [f"ws://127.0.0.1:{a.links.port}"]
        finally:
            await b.stop()
            await a.stop()

    asyncio.run(scenario())


def test_chain_larger_than_one_mebibyte_syncs():
    async def scenario():
        a, b = _local_node(), _local_node()
        await a.start()
        await b.start()
        try:
            big = a.mine("x" * (1100 * 1024))
            b.add_peer(f"ws://127.0.0.1:{a.links.port}")
            await _wait_for(lambda: len(b.store) == 2)
            assert b.store.tail() == big
            assert len(a.links) == 1 and len(b.links) == 1
        finally:
            await b.stop()
            await a.stop()

    asyncio.run(scenario())
