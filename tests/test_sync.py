# tests/test_sync.py
from dataclasses import replace

import pytest

from ledger_node.app_state.chain import ChainStore
from ledger_node.core.block import genesis_block, next_block
from ledger_node.p2p.messages import QueryAll, QueryLatest, ResponseChain, response_chain
from ledger_node.p2p.sync import (
    SyncProtocol,
    query_all_msg,
    query_latest_msg,
    response_all_msg,
    response_latest_msg,
)


@pytest.fixture
def wired(store_of):
    """Store + protocol wired the way LedgerNode wires them; returns (store, sync, sent)."""
    def _make(length=1, tag="a"):
        store = store_of(length, tag)
        sent = []
        sync = SyncProtocol(store, sent.append)
        store.subscribe(lambda: sent.append(response_latest_msg(store)))
        return store, sync, sent
    return _make


def test_message_constructors(store_of):
    store = store_of(3)
    assert query_latest_msg() == QueryLatest()
    assert query_all_msg() == QueryAll()
    assert response_latest_msg(store) == ResponseChain(blocks=(store.tail(),))
    assert response_all_msg(store) == ResponseChain(blocks=store.snapshot())


def test_queries_are_answered_from_the_store(wired):
    store, sync, sent = wired(3)
    assert sync.handle(QueryLatest()) == response_latest_msg(store)
    assert sync.handle(QueryAll()) == response_all_msg(store)
    assert sent == []


def test_block_linking_onto_genesis_is_appended_and_announced(wired):
    store, sync, sent = wired(1)
    received = next_block(genesis_block(), "from peer", timestamp=1465154800)

    assert sync.handle(response_chain([received])) is None

    assert len(store) == 2
    assert store.tail() == received
    assert sent == [ResponseChain(blocks=(received,))]


def test_longer_non_splicing_chain_replaces_local(wired, chain_factory):
    store, sync, sent = wired(5, tag="a")
    remote = chain_factory(7, tag="b")

    sync.handle(response_chain(remote))

    assert store.snapshot() == tuple(remote)
    assert sent == [ResponseChain(blocks=(remote[-1],))]


def test_shorter_chain_is_ignored(wired, chain_factory):
    store, sync, sent = wired(5, tag="a")
    before = store.snapshot()

    sync.handle(response_chain(chain_factory(4, tag="b")))

    assert store.snapshot() == before
    assert sent == []


def test_lone_unlinked_tip_triggers_query_all(wired, chain_factory):
    store, sync, sent = wired(5, tag="a")
    before = store.snapshot()
    tip = chain_factory(7, tag="b")[-1]

    sync.handle(response_chain([tip]))

    assert store.snapshot() == before
    assert sent == [QueryAll()]


def test_equal_length_fork_is_not_swapped(wired, chain_factory):
    store, sync, sent = wired(5, tag="a")
    before = store.snapshot()

    sync.handle(response_chain(chain_factory(5, tag="b")))

    assert store.snapshot() == before
    assert sent == []


def test_invalid_longer_chain_is_rejected(wired, chain_factory):
    store, sync, sent = wired(3, tag="a")
    before = store.snapshot()
    remote = chain_factory(6, tag="b")
    remote[2] = replace(remote[2], data="forged")

    sync.handle(response_chain(remote))

    assert store.snapshot() == before
    assert sent == []


def test_forged_tip_that_links_is_not_appended(wired):
    store, sync, sent = wired(1)
    forged = replace(next_block(genesis_block(), "x", timestamp=1465154800), data="other")

    sync.handle(response_chain([forged]))

    assert len(store) == 1
    assert sent == []


def test_unsorted_snapshot_is_sorted_by_index(wired, chain_factory):
    store, sync, sent = wired(2, tag="a")
    remote = chain_factory(5, tag="b")

    sync.handle(response_chain(list(reversed(remote))))

    assert store.snapshot() == tuple(remote)


def test_full_chain_ending_on_our_tail_plus_one_splices(wired, chain_factory):
    local = chain_factory(4, tag="a")
    store, sync, sent = wired(4, tag="a")
    extended = local + [next_block(local[-1], "next", timestamp=1465160000)]

    sync.handle(response_chain(extended))

    assert store.snapshot() == tuple(extended)
    assert len(sent) == 1


def test_empty_snapshot_is_ignored(wired):
    store, sync, sent = wired(1)
    sync.handle(ResponseChain(blocks=()))
    assert len(store) == 1
    assert sent == []


def test_handle_rejects_unknown_message():
    sync = SyncProtocol(ChainStore(), lambda m: None)
    with pytest.raises(TypeError):
        sync.handle("QUERY_LATEST")
