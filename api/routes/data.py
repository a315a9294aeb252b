"""
Snapshot API Routes.

Provides the two backup endpoints used by the chat client:
- GET  /api/data  return the most recently written snapshot
- POST /api/data  store a full snapshot in the next rotation slot

Both require the shared-secret bearer token.
"""

import logging
from typing import Any

import orjson
from fastapi import APIRouter, Depends, HTTPException, Request
from fastapi.responses import Response
from pydantic import BaseModel
from starlette.concurrency import run_in_threadpool

from api.auth import require_secret
from core.backup import MAX_SNAPSHOT_DEPTH, RotatingBackupStore, nesting_depth

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/data", tags=["Backup Data"], dependencies=[Depends(require_secret)])


class SaveResponse(BaseModel):
    """Acknowledgement for a stored snapshot."""
    success: bool = True
    message: str
    slotUsed: int


def get_store(request: Request) -> RotatingBackupStore:
    """Backup store attached to the running app."""
    return request.app.state.backup_store


async def read_snapshot_body(request: Request) -> Any:
    """Read and decode the request body as a JSON object or array."""
    body = await request.body()

    limit = request.app.state.config.body_limit_bytes
    if len(body) > limit:
        raise HTTPException(413, f"Request body too large. Maximum size is {limit} bytes")

    try:
        snapshot = orjson.loads(body)
    except orjson.JSONDecodeError as e:
        if "surrogate" in str(e):
            raise HTTPException(400, f"Request body contains an unpaired UTF-16 surrogate escape: {e}")
        raise HTTPException(400, f"Request body is not valid JSON: {e}")

    if not isinstance(snapshot, (dict, list)):
        raise HTTPException(400, "Snapshot must be a JSON object or array")

    # Checked here so an unstorable snapshot never advances the slot index
    if nesting_depth(snapshot) > MAX_SNAPSHOT_DEPTH:
        raise HTTPException(400, f"Snapshot is nested deeper than {MAX_SNAPSHOT_DEPTH} levels")

    return snapshot


@router.get("")
async def fetch_latest(store: RotatingBackupStore = Depends(get_store)):
    """
    Return the newest snapshot on the server.

    404 when nothing has been saved yet so the client can tell a first run
    apart from a broken server.
    """
    snapshot = await run_in_threadpool(store.load_latest)
    return Response(content=orjson.dumps(snapshot), media_type="application/json")


@router.post("", response_model=SaveResponse)
async def save_snapshot(
    snapshot: Any = Depends(read_snapshot_body),
    store: RotatingBackupStore = Depends(get_store),
):
    """Store the full client state in the next backup slot."""
    result = await run_in_threadpool(store.save, snapshot)
    logger.info(f"Saved snapshot to slot {result.slot} ({result.size_bytes} bytes)")

    return SaveResponse(message="Backup saved. Slots rotated.", slotUsed=result.slot)
