#!/usr/bin/env python3
"""ledger_node/p2p/links.py
--------------------------------
Live peer links over websockets.

What it provides
----------------
* **Inbound server** on the peer port (``listen``)
* **Outbound dials** to explicit addresses (``connect`` / ``connect_to_peers``)
* **Link lifecycle**: both directions register the link, send QUERY_LATEST,
  then read frames until the socket closes; a closed or failing link is
  dropped and never redialed
* **Broadcast**: one independent send per live link, taken from a snapshot of
  the live set so links dropping mid-broadcast are harmless

Everything runs on the caller's event loop; no locks are needed because the
live set is only touched from that loop.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Awaitable, Callable, Iterable, List, Optional, Set, Union

from websockets.asyncio.client import connect as ws_connect
from websockets.asyncio.server import Server, serve
from websockets.exceptions import ConnectionClosed, WebSocketException

from ..errors import MalformedMessage, PeerUnreachable
from .messages import Message, QueryLatest, decode_message, encode_message

log = logging.getLogger(__name__)

MessageHandler = Callable[[Message], Optional[Message]]

# Must fit a full chain dump; websockets' own default is 1 MiB
DEFAULT_MAX_MESSAGE_BYTES = 100 * 1024 * 1024


def format_address(remote_address: Any) -> str:
    if isinstance(remote_address, (tuple, list)) and len(remote_address) >= 2:
        return f"{remote_address[0]}:{remote_address[1]}"
    return str(remote_address or "unknown")


class PeerLink:
    """One live connection. ``websocket`` needs ``send``, ``close`` and async iteration."""

    def __init__(self, websocket: Any, address: str) -> None:
        self.websocket = websocket
        self.address = address

    def __repr__(self) -> str:
        return f"PeerLink({self.address!r})"


class PeerLinks:
    def __init__(
        self,
        on_message: Optional[MessageHandler] = None,
        max_size: int = DEFAULT_MAX_MESSAGE_BYTES,
    ) -> None:
        self.on_message = on_message
        self.max_size = max_size
        self._links: List[PeerLink] = []
        self._sends: Set[asyncio.Task] = set()
        self._dials: Set[asyncio.Task] = set()
        self._server: Optional[Server] = None

    def __len__(self) -> int:
        return len(self._links)

    def peers(self) -> List[str]:
        return [link.address for link in self._links]

    # ------------------------------------------------------------------
    # Server / dialing
    # ------------------------------------------------------------------

    async def listen(self, host: str, port: int) -> Server:
        self._server = await serve(self.accept, host, port, max_size=self.max_size)
        log.info("listening for peers on %s:%s", host, self.port)
        return self._server

    @property
    def port(self) -> Optional[int]:
        if self._server is None:
            return None
        for sock in self._server.sockets:
            return sock.getsockname()[1]
        return None

    async def accept(self, websocket: Any) -> None:
        await self._run_link(PeerLink(websocket, format_address(getattr(websocket, "remote_address", None))))

    async def connect(self, address: str) -> None:
        """Dial ``address`` and serve the link until it closes."""
        try:
            websocket = await ws_connect(address, max_size=self.max_size)
        except (OSError, WebSocketException, asyncio.TimeoutError) as exc:
            raise PeerUnreachable(address, str(exc)) from exc
        await self._run_link(PeerLink(websocket, address))

    def connect_to_peers(self, addresses: Iterable[str]) -> None:
        for address in addresses:
            address = address.strip()
            if address:
                self._spawn(self._dial(address), self._dials)

    async def _dial(self, address: str) -> None:
        try:
            await self.connect(address)
        except PeerUnreachable as exc:
            log.warning("connection failed: %s", exc)

    # ------------------------------------------------------------------
    # Link lifecycle
    # ------------------------------------------------------------------

    async def _run_link(self, link: PeerLink) -> None:
        self._links.append(link)
        log.info("peer connected: %s", link.address)
        try:
            await self.send(link, QueryLatest())
            async for frame in link.websocket:
                await self._on_frame(link, frame)
        except ConnectionClosed:
            pass
        finally:
            self._drop(link)
            await link.websocket.close()

    async def _on_frame(self, link: PeerLink, frame: Union[str, bytes]) -> None:
        try:
            message = decode_message(frame)
        except MalformedMessage as exc:
            log.warning("dropping malformed message from %s: %s", link.address, exc)
            return
        log.debug("received %s from %s", type(message).__name__, link.address)
        if self.on_message is None:
            return
        reply = self.on_message(message)
        if reply is not None:
            await self.send(link, reply)

    def _drop(self, link: PeerLink) -> None:
        if link in self._links:
            self._links.remove(link)
            log.info("connection to peer closed: %s", link.address)

    # ------------------------------------------------------------------
    # Sending
    # ------------------------------------------------------------------

    async def send(self, link: PeerLink, message: Message) -> bool:
        return await self._send_payload(link, encode_message(message))

    async def _send_payload(self, link: PeerLink, payload: str) -> bool:
        try:
            await self._deliver(link, payload)
        except PeerUnreachable as exc:
            log.warning("%s", exc)
            self._drop(link)
            return False
        return True

    @staticmethod
    async def _deliver(link: PeerLink, payload: str) -> None:
        try:
            await link.websocket.send(payload)
        except (ConnectionClosed, OSError) as exc:
            raise PeerUnreachable(link.address, str(exc)) from exc

    def broadcast(self, message: Message) -> None:
        """Fire-and-forget ``message`` to every live link."""
        targets = list(self._links)
        if not targets:
            return
        payload = encode_message(message)
        for link in targets:
            self._spawn(self._send_payload(link, payload), self._sends)

    def _spawn(self, coro: Awaitable[Any], bucket: Set[asyncio.Task]) -> asyncio.Task:
        task = asyncio.get_running_loop().create_task(coro)
        bucket.add(task)
        task.add_done_callback(bucket.discard)
        return task

    async def drain(self) -> None:
        """Wait until every scheduled broadcast send has finished."""
        while self._sends:
            await asyncio.wait(list(self._sends))

    async def close(self) -> None:
        if self._server is not None:
            self._server.close()
            await self._server.wait_closed()
            self._server = None
        for link in list(self._links):
            await link.websocket.close()
        for task in list(self._dials):
            task.cancel()
        if self._dials:
            await asyncio.gather(*list(self._dials), return_exceptions=True)
        await self.drain()
