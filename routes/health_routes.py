"""
GET /health

mongodb       required: a failed ping makes the service "unhealthy" (503)
object_store  optional: a failed ping only "degrades" it (200), since just
              profile images depend on it
"""

from __future__ import annotations

from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse

from schemas.dto.responses.common import HealthResponse
from shared.logging import get_logger

log = get_logger(__name__)

router = APIRouter(tags=["health"])


async def _mongo_reachable(db) -> bool:
    try:
        await db.client.admin.command("ping")
    except Exception as e:
        log.warning("health_mongodb_unreachable", error=str(e))
        return False
    return True


@router.get("/health", response_model=HealthResponse)
async def health_check(request: Request) -> JSONResponse:
    state = request.app.state
    mongo_ok = await _mongo_reachable(state.db)
    store_ok = await state.object_store.ping()

    if not mongo_ok:
        status = "unhealthy"
    elif not store_ok:
        status = "degraded"
    else:
        status = "healthy"

    body = HealthResponse(
        status=status,
        checks={
            "mongodb": "ok" if mongo_ok else "error",
            "object_store": "ok" if store_ok else "error",
        },
    )
    return JSONResponse(
        status_code=503 if status == "unhealthy" else 200,
        content=body.model_dump(),
    )
