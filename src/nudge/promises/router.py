"""Pinky promise endpoints."""

from __future__ import annotations

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from nudge.auth.dependencies import CurrentUser, get_current_user
from nudge.database import get_session
from nudge.db.models import PinkyPromise
from nudge.promises.schemas import CreatePromiseRequest, PromiseListResponse, PromiseResponse
from nudge.promises.service import create_promise, get_promise, list_promises

router = APIRouter(prefix="/api/v1", tags=["Promises"])


def _promise_response(promise: PinkyPromise) -> PromiseResponse:
    block = promise.block
    return PromiseResponse(
        id=promise.id,
        block_id=promise.block_id,
        promise_date=promise.promise_date,
        status=promise.status,
        class_name=block.study_class.name if block is not None and block.study_class else None,
        start_time=block.start_time if block is not None else None,
        duration_minutes=block.duration_minutes if block is not None else None,
        created_at=promise.created_at,
        resolved_at=promise.resolved_at,
    )


@router.post("/promises", response_model=PromiseResponse, status_code=201)
async def make_promise(
    body: CreatePromiseRequest,
    user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
):
    """Promise to complete a study block. 409 if already promised."""
    promise = await create_promise(db, user.id, body.block_id)
    return _promise_response(await get_promise(db, user.id, promise.id))


@router.get("/promises", response_model=PromiseListResponse)
async def get_promises(
    status: str | None = Query(None, pattern="^(active|completed|broken)$"),
    user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
):
    promises = await list_promises(db, user.id, status)
    return PromiseListResponse(promises=[_promise_response(p) for p in promises])
