"""Blocking queue feeding the bidirectional (live) run mode."""

from __future__ import annotations

import asyncio
from collections import deque
from dataclasses import dataclass

from ..errors import QueueClosedError
from ..types import Blob, Content


@dataclass
class LiveRequest:
    content: Content | None = None
    blob: Blob | None = None
    close: bool = False


class LiveRequestQueue:
    """Unbounded FIFO. ``get`` resolves from the buffer or waits for the next send.

    ``close`` enqueues a close sentinel and refuses later sends; it does not
    cancel a pending ``get``.
    """

    def __init__(self) -> None:
        self._buffer: deque[LiveRequest] = deque()
        self._waiters: deque[asyncio.Future[LiveRequest]] = deque()
        self._closed = False

    @property
    def closed(self) -> bool:
        return self._closed

    def send(self, request: LiveRequest) -> None:
        if self._closed:
            raise QueueClosedError()
        if request.close:
            self._closed = True
        while self._waiters:
            waiter = self._waiters.popleft()
            if not waiter.done():
                waiter.set_result(request)
                return
        self._buffer.append(request)

    def send_content(self, content: Content) -> None:
        self.send(LiveRequest(content=content))

    def send_realtime(self, blob: Blob) -> None:
        self.send(LiveRequest(blob=blob))

    def close(self) -> None:
        self.send(LiveRequest(close=True))

    async def get(self) -> LiveRequest:
        if self._buffer:
            return self._buffer.popleft()
        waiter: asyncio.Future[LiveRequest] = asyncio.get_running_loop().create_future()
        self._waiters.append(waiter)
        try:
            return await waiter
        except asyncio.CancelledError:
            if waiter in self._waiters:
                self._waiters.remove(waiter)
            raise
