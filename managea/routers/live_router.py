# /managea/routers/live_router.py

import asyncio
import logging

from fastapi import APIRouter, Depends, WebSocket, WebSocketDisconnect, status

from ..services.database_service import DatabaseService, get_db_service
from ..services.live_updates import KINDS

logger = logging.getLogger(__name__)

router = APIRouter()


async def _wait_for_disconnect(websocket: WebSocket) -> None:
    """Drains client messages until the socket closes. Clients only listen."""
    while True:
        message = await websocket.receive()
        if message["type"] == "websocket.disconnect":
            return


@router.websocket("/{kind}")
async def stream_snapshots(websocket: WebSocket, kind: str, db: DatabaseService = Depends(get_db_service)):
    """
    Streams the full, ordered snapshot of one record kind: first the current
    state, then a fresh copy after every committed change.
    """
    if kind not in KINDS:
        await websocket.close(code=status.WS_1008_POLICY_VIOLATION)
        return

    await websocket.accept()
    loop = asyncio.get_running_loop()
    queue: asyncio.Queue = asyncio.Queue()

    # Writers publish from worker threads, so hand snapshots to this loop safely.
    def on_snapshot(snapshot):
        loop.call_soon_threadsafe(queue.put_nowait, snapshot)

    subscription = db.subscribe(kind, on_snapshot)
    # Later snapshots are loaded by the writer's session; this one is only needed for the first.
    db.session.close()

    disconnected = asyncio.ensure_future(_wait_for_disconnect(websocket))
    try:
        while True:
            next_snapshot = asyncio.ensure_future(queue.get())
            done, _ = await asyncio.wait({next_snapshot, disconnected}, return_when=asyncio.FIRST_COMPLETED)
            if disconnected in done:
                next_snapshot.cancel()
                break
            await websocket.send_json(next_snapshot.result())
    except WebSocketDisconnect:
        pass
    finally:
        disconnected.cancel()
        subscription.unsubscribe()
        logger.info("Live '%s' subscriber disconnected", kind)
