import logging
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from typing import Any, Optional

from fastapi import APIRouter, Body, Depends, FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, Response
from motor.motor_asyncio import AsyncIOMotorClient
from prometheus_client import CONTENT_TYPE_LATEST, generate_latest

from . import __version__
from .errors import StoreError, ValidationError
from .extractor import extract_reading
from .metrics import uplink_ingest_duration, uplink_validation_failures_total, uplinks_ingested_total
from .queries import QueryFacade, parse_limit
from .settings import Settings
from .store import DualWriteStore, TelemetryStore
from .validation import validate_envelope

logger = logging.getLogger(__name__)

router = APIRouter()


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


def _server_error(error: str, exc: Exception) -> JSONResponse:
    return JSONResponse(
        status_code=500,
        content={"success": False, "error": error, "details": str(exc), "timestamp": _now()},
    )


def get_store(request: Request) -> TelemetryStore:
    return request.app.state.store


@router.get("/")
async def root():
    """Static listing of what this service exposes"""
    return {
        "service": "TTN to MongoDB Webhook",
        "status": "running",
        "version": __version__,
        "endpoints": {
            "webhook": "POST /ttn",
            "health": "GET /health",
            "latestData": "GET /device/{deviceId}/latest",
            "allDevices": "GET /devices",
            "metrics": "GET /metrics",
        },
        "timestamp": _now(),
    }


@router.get("/health")
async def health(store: TelemetryStore = Depends(get_store)):
    """Health check that round-trips one write through MongoDB"""
    try:
        await store.health_check()
    except StoreError as e:
        logger.error(f"Health check failed: {e}")
        return JSONResponse(
            status_code=500,
            content={"status": "unhealthy", "error": str(e), "timestamp": _now()},
        )
    return {"status": "healthy", "database": "connected", "timestamp": _now()}


@router.post("/ttn")
async def ttn_uplink(envelope: Any = Body(None), store: TelemetryStore = Depends(get_store)):
    """TTN webhook: validate, extract and dual-write one uplink"""
    with uplink_ingest_duration.time():
        try:
            validate_envelope(envelope)
        except ValidationError as e:
            uplink_validation_failures_total.labels(reason=e.reason.value).inc()
            logger.warning(f"Rejected uplink: {e.message}")
            return JSONResponse(status_code=400, content=e.to_dict())

        try:
            reading = extract_reading(envelope)
            result = await DualWriteStore(store).write(reading)
        except Exception as e:
            logger.exception("Error processing TTN webhook")
            return _server_error("Failed to process webhook data", e)

    uplinks_ingested_total.labels(device_id=reading.device_id).inc()
    logger.info(
        f"Stored uplink for {reading.device_id} in {result.collection_name} "
        f"({result.device_doc_id}): {reading.sensor_data}"
    )
    return {
        "success": True,
        "message": "Data stored successfully",
        "deviceId": reading.device_id,
        "collection": result.collection_name,
        "docId": result.device_doc_id,
        "timestamp": reading.received_at,
    }


@router.get("/device/{device_id}/latest")
async def device_latest(device_id: str, limit: Optional[str] = None, store: TelemetryStore = Depends(get_store)):
    """Most recent readings for one device"""
    try:
        readings = await QueryFacade(store).latest(
            device_id, parse_limit(limit, store.settings.default_query_limit)
        )
    except StoreError as e:
        logger.error(f"Error fetching data for {device_id}: {e}")
        return _server_error("Failed to fetch device data", e)
    return {
        "success": True,
        "deviceId": device_id,
        "count": len(readings),
        "data": [r.model_dump(by_alias=True, mode="json") for r in readings],
    }


@router.get("/devices")
async def devices(store: TelemetryStore = Depends(get_store)):
    """Roster of every device seen in the global series"""
    try:
        roster = await QueryFacade(store).list_devices()
    except StoreError as e:
        logger.error(f"Error fetching devices: {e}")
        return _server_error("Failed to fetch devices", e)
    return {
        "success": True,
        "devices": [entry.model_dump(by_alias=True, mode="json") for entry in roster],
        "totalDevices": len(roster),
    }


@router.get("/metrics")
async def metrics():
    """Prometheus metrics endpoint"""
    return Response(generate_latest(), media_type=CONTENT_TYPE_LATEST)


def create_app(settings: Optional[Settings] = None, db=None) -> FastAPI:
    """Build the app around one store handle.

    ``db`` is a Motor database (or anything with the same collection API);
    when omitted a client is created from ``settings.mongo_uri`` and closed
    on shutdown.
    """
    settings = settings or Settings()
    logging.basicConfig(level=settings.log_level)

    client = None
    if db is None:
        client = AsyncIOMotorClient(settings.mongo_uri, tz_aware=True)
        db = client[settings.mongo_db]

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        yield
        # close database connection on shutdown
        if client is not None:
            client.close()

    app = FastAPI(title="ttn-webhook", version=__version__, lifespan=lifespan)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.state.settings = settings
    app.state.store = TelemetryStore(db, settings)
    app.include_router(router)
    return app


app = create_app()
