"""
regionwatch Main Application
============================

FastAPI entry point for the region capture + recognition service.

One capture session per process:
    CaptureScheduler → CaptureCycle (capture → preprocess → detect → recognize)

Endpoints:
    GET  /                - Service information
    GET  /health          - Liveness probe (is process alive?)
    GET  /ready           - Readiness probe (capture loop running?)
    GET  /metrics         - Scheduler, detector and recognition metrics
    GET  /text            - Latest recognition event
    POST /capture/start   - Start the capture loop
    POST /capture/stop    - Stop the capture loop
    PUT  /region          - Change the capture region (resets the detector)
    PUT  /preprocess      - Change preprocessing for subsequent ticks
    WS   /ws/text         - Real-time recognition events
"""

import asyncio
import logging
import time
from contextlib import asynccontextmanager
from typing import AsyncIterator, Optional, Union

from fastapi import FastAPI, WebSocket, WebSocketDisconnect
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field

from regionwatch.config import settings
from regionwatch.capture import ScreenRegionSource, StreamFrameConsumer, StreamRegionSource
from regionwatch.detector import StabilityDetector
from regionwatch.imaging import FrameDiffer, FramePreprocessor
from regionwatch.models import PreprocessConfig, RecognitionEvent, Region
from regionwatch.pipeline import CaptureCycle, CaptureScheduler
from regionwatch.recognition import (
    MockRecognitionEngine,
    RecognitionDispatcher,
    VisionRecognitionEngine,
)


logger = logging.getLogger(__name__)


# =============================================================================
# Global State
# =============================================================================

# Acquisition
_source: Optional[Union[ScreenRegionSource, StreamRegionSource]] = None
_stream_consumer: Optional[StreamFrameConsumer] = None
_consumer_task: Optional[asyncio.Task] = None

# Pipeline
_dispatcher: Optional[RecognitionDispatcher] = None
_cycle: Optional[CaptureCycle] = None
_scheduler: Optional[CaptureScheduler] = None

_startup_time: float = 0.0


# =============================================================================
# Getters
# =============================================================================

def get_cycle() -> Optional[CaptureCycle]:
    return _cycle

def get_scheduler() -> Optional[CaptureScheduler]:
    return _scheduler

def get_dispatcher() -> Optional[RecognitionDispatcher]:
    return _dispatcher

def is_ready() -> bool:
    return _scheduler is not None and _scheduler.running


# =============================================================================
# Component Factories
# =============================================================================

def create_source() -> Union[ScreenRegionSource, StreamRegionSource]:
    """Create the acquisition source selected in config."""
    global _stream_consumer

    source = settings.capture.source

    if source == "screen":
        logger.info(f"Using ScreenRegionSource (monitor={settings.capture.monitor_index})")
        return ScreenRegionSource(
            region=settings.region,
            monitor_index=settings.capture.monitor_index,
        )

    elif source == "stream":
        logger.info(f"Using StreamRegionSource: {settings.stream.url}")
        _stream_consumer = StreamFrameConsumer(
            url=settings.stream.url,
            reconnect_backoff_ms=settings.stream.reconnect_backoff_ms,
            max_reconnect_attempts=settings.stream.max_reconnect_attempts,
        )
        return StreamRegionSource(_stream_consumer, settings.region)

    else:
        raise ValueError(f"Unknown capture source: {source}")


def create_recognition_engine() -> Union[MockRecognitionEngine, VisionRecognitionEngine]:
    """
    Create recognition engine based on config.

    Fails fast if the vision backend is requested but unavailable.
    """
    backend = settings.recognition.backend

    if backend == "mock":
        logger.info("Using MockRecognitionEngine")
        return MockRecognitionEngine()

    elif backend == "vision":
        logger.info(
            f"Using VisionRecognitionEngine: "
            f"language_hints={settings.recognition.language_hints}"
        )
        return VisionRecognitionEngine(
            credentials_path=settings.recognition.credentials_path,
            timeout_sec=settings.recognition.timeout_sec,
        )

    else:
        raise ValueError(f"Unknown recognition backend: {backend}")


# =============================================================================
# Lifespan Management
# =============================================================================

@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Application lifespan manager with graceful shutdown."""
    global _source, _consumer_task, _dispatcher, _cycle, _scheduler, _startup_time

    _startup_time = time.time()
    logger.info(f"Starting {settings.service.name} {settings.service.version}")

    _source = create_source()
    if _stream_consumer is not None:
        _consumer_task = asyncio.create_task(
            _stream_consumer.run(),
            name="stream_consumer",
        )

    _dispatcher = RecognitionDispatcher(
        engine=create_recognition_engine(),
        language_hints=settings.recognition.language_hints,
    )

    detector = StabilityDetector(
        differ=FrameDiffer(
            pixel_threshold=settings.diff.pixel_threshold,
            equality_threshold=settings.diff.equality_threshold,
        ),
    )
    _cycle = CaptureCycle(
        source=_source,
        detector=detector,
        dispatcher=_dispatcher,
        preprocessor=FramePreprocessor(),
        preprocess_config=settings.preprocess,
        log_every_n_ticks=settings.capture.log_every_n_ticks,
    )
    _scheduler = CaptureScheduler()

    if settings.capture.autostart:
        _scheduler.start(settings.capture.interval_ms / 1000.0, _cycle.run_once)

    logger.info("All components started")

    yield

    # Shutdown
    logger.info("Shutting down gracefully...")

    _scheduler.stop()
    await _scheduler.wait_idle()

    if _stream_consumer is not None:
        await _stream_consumer.stop()

    if _consumer_task:
        try:
            await asyncio.wait_for(_consumer_task, timeout=5.0)
        except asyncio.TimeoutError:
            _consumer_task.cancel()
            try:
                await _consumer_task
            except asyncio.CancelledError:
                pass

    logger.info("Shutdown complete")


# =============================================================================
# FastAPI Application
# =============================================================================

app = FastAPI(
    title="regionwatch",
    description="Settled-change text recognition for a captured screen region",
    version=settings.service.version,
    lifespan=lifespan,
)


class StartRequest(BaseModel):
    """Optional overrides for POST /capture/start."""

    interval_ms: Optional[int] = Field(
        default=None,
        ge=50,
        description="Tick interval; defaults to capture.interval_ms",
    )


# =============================================================================
# HTTP Endpoints
# =============================================================================

@app.get("/")
async def root() -> JSONResponse:
    """Service information endpoint."""
    return JSONResponse({
        "service": settings.service.name,
        "version": settings.service.version,
        "status": "running",
        "capture_source": settings.capture.source,
        "recognition_backend": settings.recognition.backend,
    })


@app.get("/health")
async def health() -> JSONResponse:
    """Liveness probe - always 200 while the process is alive."""
    return JSONResponse({
        "status": "healthy",
        "uptime_seconds": round(time.time() - _startup_time, 1),
    })


@app.get("/ready")
async def ready() -> JSONResponse:
    """
    Readiness probe.

    Returns 200 while the capture loop is running, 503 otherwise.
    """
    if is_ready():
        return JSONResponse({
            "status": "ready",
            "ticks": _cycle.get_metrics()["ticks"],
        })
    return JSONResponse({"status": "not_ready"}, status_code=503)


@app.get("/metrics")
async def metrics() -> JSONResponse:
    """Detailed metrics for observability."""
    payload = {
        "uptime_seconds": round(time.time() - _startup_time, 1),
        "capture_source": settings.capture.source,
        "recognition_backend": settings.recognition.backend,
    }
    if _scheduler is not None:
        payload["scheduler"] = _scheduler.get_metrics()
    if _cycle is not None:
        payload["cycle"] = _cycle.get_metrics()
    if _dispatcher is not None:
        payload["recognition"] = _dispatcher.get_metrics()
    if _source is not None:
        payload["source"] = _source.get_metrics()
    return JSONResponse(payload)


@app.get("/text")
async def text() -> JSONResponse:
    """Latest recognition event."""
    event = _dispatcher.last_event if _dispatcher else None
    if event is None:
        return JSONResponse(
            {"error": "No recognition result available yet"},
            status_code=503,
        )
    return JSONResponse(event.model_dump(mode="json"))


@app.post("/capture/start")
async def capture_start(request: Optional[StartRequest] = None) -> JSONResponse:
    """Start the capture loop (no-op if already running)."""
    interval_ms = settings.capture.interval_ms
    if request is not None and request.interval_ms is not None:
        interval_ms = request.interval_ms

    _scheduler.start(interval_ms / 1000.0, _cycle.run_once)
    return JSONResponse({
        "status": "running",
        "interval_ms": round(_scheduler.interval * 1000),
    })


@app.post("/capture/stop")
async def capture_stop() -> JSONResponse:
    """Stop the capture loop; an in-flight tick is allowed to finish."""
    _scheduler.stop()
    return JSONResponse({
        "status": "stopped",
        **_scheduler.get_metrics(),
    })


@app.put("/region")
async def update_region(region: Region) -> JSONResponse:
    """Change the capture region."""
    _cycle.update_region(region)
    return JSONResponse(region.model_dump())


@app.put("/preprocess")
async def update_preprocess(config: PreprocessConfig) -> JSONResponse:
    """Change preprocessing for subsequent ticks."""
    _cycle.preprocess_config = config
    logger.info(f"Preprocess config updated: {config.model_dump()}")
    return JSONResponse(config.model_dump())


# =============================================================================
# WebSocket Endpoints
# =============================================================================

@app.websocket("/ws/text")
async def text_stream(websocket: WebSocket) -> None:
    """WebSocket endpoint pushing every recognition event."""
    await websocket.accept()
    logger.info("Client connected to /ws/text")

    queue: asyncio.Queue = asyncio.Queue(maxsize=16)

    def enqueue(event: RecognitionEvent) -> None:
        if queue.full():
            queue.get_nowait()
        queue.put_nowait(event)

    _dispatcher.add_listener(enqueue)
    try:
        while True:
            event = await queue.get()
            await websocket.send_json(event.model_dump(mode="json"))
    except WebSocketDisconnect:
        pass
    except Exception as e:
        logger.warning(f"WebSocket error: {e}")
    finally:
        _dispatcher.remove_listener(enqueue)
        logger.info("Client disconnected from /ws/text")


# =============================================================================
# Main Entry Point
# =============================================================================

def run() -> None:
    """Run the service with uvicorn."""
    import uvicorn

    uvicorn.run(
        "regionwatch.main:app",
        host=settings.server.host,
        port=settings.server.port,
        reload=False,
    )


if __name__ == "__main__":
    run()
