"""Triage router — present, decide, undo and refill the candidate queue.

QuotaExceeded, NothingToDecide and PersistenceFailure are mapped to HTTP
responses by the handlers in main.py.
"""

import logging

from fastapi import APIRouter, Depends

from ..dependencies import get_queue
from ..schemas.triage import DecideRequest, RefillRequest
from ..services.triage_service import QueueHandle
from .candidates import candidate_out

router = APIRouter(tags=["triage"])
log = logging.getLogger("scout.routers.triage")


def _queue_view(queue: QueueHandle) -> dict:
    current = queue.current()
    return {**queue.status(), "current": candidate_out(current) if current else None}


@router.get("/api/triage")
def api_triage(queue: QueueHandle = Depends(get_queue)):
    return _queue_view(queue)


@router.post("/api/triage/decide")
def api_decide(body: DecideRequest, queue: QueueHandle = Depends(get_queue)):
    result = queue.decide(body.direction)
    return {
        "decided": {"candidate_id": result.candidate_id, "status": result.status},
        "first_accept": result.first_accept,
        **_queue_view(queue),
    }


@router.post("/api/triage/undo")
def api_undo(queue: QueueHandle = Depends(get_queue)):
    restored = queue.undo()
    return {"undone": restored is not None, "candidate_id": restored, **_queue_view(queue)}


@router.post("/api/triage/refill")
def api_refill(body: RefillRequest, queue: QueueHandle = Depends(get_queue)):
    added = queue.refill(c.model_dump() for c in body.candidates)
    return {"added": added, **_queue_view(queue)}
