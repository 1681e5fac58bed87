from fastapi import APIRouter, Request

from permit_office.core.admission import STATE_READY

router = APIRouter(prefix="/api", tags=["system"])


@router.get("/health")
async def health(request: Request) -> dict:
    """Liveness plus admission queue state. Never queued."""
    queue = getattr(request.app.state, "admission_queue", None)
    if queue is None:
        return {"status": "ok", "state": STATE_READY, "queue": None}
    stats = queue.stats()
    return {
        "status": "ok" if queue.is_ready else "initializing",
        "state": stats["state"],
        "queue": stats,
    }
