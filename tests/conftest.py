import asyncio

import pytest

from ledger_node.app_state.chain import ChainStore
from ledger_node.core.block import genesis_block, next_block


def build_chain(length, tag="a", start_ts=1465154800):
    """Valid chain of ``length`` blocks; different tags give divergent forks."""
    blocks = [genesis_block()]
    while len(blocks) < length:
        n = len(blocks)
        blocks.append(next_block(blocks[-1], f"{tag}-{n}", timestamp=start_ts + n))
    return blocks


class FakeWebSocket:
    """Stands in for a websockets connection: records sends, replays frames."""

    def __init__(self, frames=(), remote_address=("10.0.0.9", 50000), hold=False):
        self.frames = list(frames)
        self.remote_address = remote_address
        self.hold = hold
        self.sent = []
        self.closed = False
        self.fail_send = False
        self._hangup = asyncio.Event()

    async def send(self, payload):
        if self.fail_send:
            raise OSError("broken pipe")
        self.sent.append(payload)

    async def close(self):
        self.closed = True
        self._hangup.set()

    def hangup(self):
        self._hangup.set()

    def __aiter__(self):
        return self._frames()

    async def _frames(self):
        for frame in self.frames:
            yield frame
        if self.hold:
            await self._hangup.wait()


@pytest.fixture
def store():
    return ChainStore()


@pytest.fixture
def chain_factory():
    return build_chain


@pytest.fixture
def store_of(chain_factory):
    """Store already holding a chain of the given length."""
    def _make(length, tag="a"):
        s = ChainStore()
        assert s.replace(chain_factory(length, tag)) or length == 1
        return s
    return _make
