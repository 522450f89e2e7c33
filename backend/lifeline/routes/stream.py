# lifeline/routes/stream.py
# ------------------------------------------------------------
# Server-Sent Events (SSE) stream
#
# The engine writes updates into the Redis feed list.
# This endpoint replays new items to connected clients:
# - event: <type>
# - data: <json>
#
# Dashboards may keep polling /api/sos instead; the stream is
# an optional push channel on top of the same state.
# ------------------------------------------------------------

from fastapi import APIRouter, Depends, HTTPException
from fastapi.responses import StreamingResponse
import asyncio
import json
import time
from typing import AsyncGenerator

from ..feed import UpdateFeed
from ._common import get_feed

router = APIRouter(tags=["stream"])


def sse(event: str, data_obj) -> str:
    """
    Build an SSE message.

    Format:
        event: name
        data: json
    """
    return f"event: {event}\ndata: {json.dumps(data_obj)}\n\n"


@router.get("/api/stream")
def stream(feed: UpdateFeed = Depends(get_feed)):
    """
    Live updates stream.

    - Starts from "now" (does not replay history).
    - Sends a heartbeat periodically to keep the connection alive.
    """
    if not feed.enabled:
        raise HTTPException(status_code=503, detail="Update feed disabled")

    last_seq = feed.last_seq()  # start from "now"

    async def gen() -> AsyncGenerator[str, None]:
        nonlocal last_seq

        yield "retry: 2000\n\n"
        yield sse("hello", {"ok": True, "ts": time.time()})

        heartbeat_every = 10  # seconds
        poll_every = 0.5      # seconds

        last_heartbeat = time.time()

        while True:
            for payload in feed.read_since(last_seq):
                last_seq = int(payload["seq"])
                yield sse(payload.get("type", "update"), payload.get("data", {}))

            now = time.time()
            if now - last_heartbeat >= heartbeat_every:
                yield sse("heartbeat", {"t": now})
                last_heartbeat = now

            await asyncio.sleep(poll_every)

    headers = {
        "Cache-Control": "no-cache",
        "Connection": "keep-alive",
        # if behind nginx, prevents response buffering
        "X-Accel-Buffering": "no",
    }

    return StreamingResponse(gen(), media_type="text/event-stream", headers=headers)
