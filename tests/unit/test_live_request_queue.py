"""Unit tests for LiveRequestQueue."""

import asyncio

import pytest

from weft.agents import LiveRequest, LiveRequestQueue
from weft.errors import QueueClosedError
from weft.types import Blob, Content


class TestLiveRequestQueue:
    async def test_fifo_from_buffer(self):
        queue = LiveRequestQueue()
        queue.send_content(Content.from_text("one"))
        queue.send_realtime(Blob(mime_type="audio/pcm", data=b"\x00"))

        first = await queue.get()
        second = await queue.get()

        assert first.content.text == "one"
        assert second.blob.data == b"\x00"

    async def test_get_waits_for_send(self):
        queue = LiveRequestQueue()
        waiter = asyncio.create_task(queue.get())
        await asyncio.sleep(0)
        assert not waiter.done()

        queue.send_content(Content.from_text("late"))

        request = await asyncio.wait_for(waiter, timeout=1)
        assert request.content.text == "late"

    async def test_close_is_delivered_then_refuses_sends(self):
        queue = LiveRequestQueue()
        queue.send_content(Content.from_text("last"))
        queue.close()

        assert queue.closed
        assert (await queue.get()).content.text == "last"
        assert (await queue.get()).close is True
        with pytest.raises(QueueClosedError, match="closed LiveRequestQueue"):
            queue.send(LiveRequest(content=Content.from_text("too late")))

    async def test_cancelled_get_does_not_swallow_next_send(self):
        queue = LiveRequestQueue()
        abandoned = asyncio.create_task(queue.get())
        await asyncio.sleep(0)
        abandoned.cancel()
        with pytest.raises(asyncio.CancelledError):
            await abandoned

        queue.send_content(Content.from_text("kept"))

        assert (await queue.get()).content.text == "kept"
