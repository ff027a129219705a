"""Busy block routes."""
from __future__ import annotations

from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Query, Request, status
from sqlalchemy.orm import Session

from studyflow.api.schemas.inputs import BusyBlockListResponse, BusyBlockUpsertRequest, DeleteResponse
from studyflow.db.deps import get_db
from studyflow.observability.metrics import log_metric
from studyflow.observability.tracing import trace
from studyflow.services import inputs_store

router = APIRouter()


@router.get("/busy-blocks", response_model=BusyBlockListResponse, tags=["busy-blocks"])
def list_busy_blocks(
    request: Request,
    user_id: UUID = Query(..., description="User ID"),
    db: Session = Depends(get_db),
) -> BusyBlockListResponse:
    request_id = getattr(request.state, "request_id", None)
    with trace("busy_blocks.list", metadata={"route": "/busy-blocks"}, user_id=str(user_id), request_id=request_id):
        items = inputs_store.load_busy_blocks(db, user_id)
    log_metric("busy_blocks.list.count", len(items), metadata={"user_id": str(user_id)})
    return BusyBlockListResponse(user_id=user_id, items=items, request_id=request_id or "")


@router.post("/busy-blocks", response_model=BusyBlockListResponse, tags=["busy-blocks"])
def upsert_busy_blocks(
    request: Request,
    payload: BusyBlockUpsertRequest,
    db: Session = Depends(get_db),
) -> BusyBlockListResponse:
    request_id = getattr(request.state, "request_id", None)
    try:
        with trace("busy_blocks.upsert", metadata={"count": len(payload.items)}, user_id=str(payload.user_id), request_id=request_id):
            items = inputs_store.save_busy_blocks(db, payload.user_id, payload.items)
    except ValueError as exc:
        db.rollback()
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc))
    log_metric("busy_blocks.upsert.success", 1, metadata={"user_id": str(payload.user_id)})
    return BusyBlockListResponse(user_id=payload.user_id, items=items, request_id=request_id or "")


@router.delete("/busy-blocks/{block_id}", response_model=DeleteResponse, tags=["busy-blocks"])
def delete_busy_block(
    block_id: str,
    request: Request,
    user_id: UUID = Query(..., description="User ID"),
    db: Session = Depends(get_db),
) -> DeleteResponse:
    request_id = getattr(request.state, "request_id", None)
    with trace("busy_blocks.delete", metadata={"block_id": block_id}, user_id=str(user_id), request_id=request_id):
        deleted = inputs_store.delete_busy_block(db, user_id, block_id)
    if not deleted:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Busy block not found")
    log_metric("busy_blocks.delete.success", 1, metadata={"user_id": str(user_id)})
    return DeleteResponse(user_id=user_id, deleted=True, request_id=request_id or "")
