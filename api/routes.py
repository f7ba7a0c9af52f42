"""
api/routes.py - FastAPI route definitions
==========================================
All HTTP endpoints are defined here and wired into the app via
`app.include_router(router)` in `api/app.py`.

Endpoint summary
----------------
    GET  /health                - Liveness check
    POST /measurement/start     - Begin a measurement (mode + optional config)
    POST /measurement/samples   - Push a batch of timestamped samples
    POST /measurement/stop      - Abandon the current measurement
    GET  /measurement/status    - Phase, progress, live metrics & quality flags
    GET  /measurement/result    - Latest completed measurement
    GET  /history               - Stored measurements, oldest first
    GET  /docs                  - Auto-generated Swagger UI (FastAPI built-in)

The routes are `async def` on purpose: the controller is single-threaded
and must only ever be called from the event loop thread.
"""

from fastapi import APIRouter, Depends, HTTPException, Request
from pydantic import ValidationError

from api.schemas import (
    HistoryResponse,
    ResultResponse,
    SamplesRequest,
    SamplesResponse,
    StartRequest,
    StatusResponse,
)
from api.session import MeasurementService, SessionConflict
from config import API_TITLE
from utils.logger import get_logger

logger = get_logger("api.routes")

router = APIRouter()


def get_service(request: Request) -> MeasurementService:
    """The per-application service created by `create_app()`."""
    return request.app.state.service


# ── Health ────────────────────────────────────────────────────────────────────

@router.get("/health")
async def health():
    """Simple liveness check."""
    return {"status": "ok", "service": API_TITLE}


# ── Measurement Control ───────────────────────────────────────────────────────

@router.post("/measurement/start")
async def start_measurement(
    request: StartRequest = StartRequest(),
    service: MeasurementService = Depends(get_service),
):
    """
    Begin a measurement.

    Body (JSON, all optional):
        mode    : "finger" | "face" | "sound"   (default "finger")
        config  : MeasurementConfig overrides   (validated, 422 on bad values)
        now_ms  : float                          time anchor (default: first sample)

    Returns 409 if a measurement is already calibrating or measuring, 422 if
    the overrides clash with the server config.
    """
    try:
        session = service.start(request)
    except SessionConflict as e:
        raise HTTPException(status_code=409, detail=str(e))
    except ValidationError as e:
        raise HTTPException(status_code=422, detail=str(e))

    return {
        "status": session.phase.value,
        "mode": session.mode.value,
        "message": "Measurement started. POST samples to /measurement/samples.",
    }


@router.post("/measurement/samples")
async def push_samples(
    request: SamplesRequest,
    service: MeasurementService = Depends(get_service),
) -> SamplesResponse:
    """
    Feed a batch of samples, in capture order.

    Samples arriving after the session finished are not consumed; the
    `accepted` count says how many were.  Returns 409 when idle.
    """
    try:
        return service.add_samples(request.samples)
    except SessionConflict as e:
        raise HTTPException(status_code=409, detail=str(e))


@router.post("/measurement/stop")
async def stop_measurement(service: MeasurementService = Depends(get_service)):
    """Abandon the current measurement.  Safe to call when idle."""
    service.stop()
    return {"status": "idle", "message": "Measurement stopped."}


@router.get("/measurement/status")
async def measurement_status(service: MeasurementService = Depends(get_service)) -> StatusResponse:
    """
    Poll the current phase and live metrics.

    After a failed measurement the phase is "idle" and `message` holds the
    retry prompt (or the acquisition error).
    """
    return service.status()


@router.get("/measurement/result")
async def measurement_result(service: MeasurementService = Depends(get_service)) -> ResultResponse:
    """Latest completed measurement.  Returns 404 if none has completed yet."""
    result = service.result()
    if result is None:
        raise HTTPException(status_code=404, detail="No measurement has completed yet.")
    return result


@router.get("/history")
async def measurement_history(service: MeasurementService = Depends(get_service)) -> HistoryResponse:
    """All stored measurements, oldest first."""
    return service.history()
