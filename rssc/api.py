from __future__ import annotations

from threading import Thread

import uvicorn
from fastapi import FastAPI, HTTPException, Query
from fastapi.responses import JSONResponse

from .api_models import AddressModel, EventModel, HealthResponse, MasterResponse, ProducerModel
from .channel import UpdateChannel
from .events import latest_events, log_event
from .runtime import RuntimeState


def create_app(master_name: str, runtime: RuntimeState, channel: UpdateChannel | None = None) -> FastAPI:
    """Read-only status API over the controller's in-memory state."""
    app = FastAPI(title="Redis Sentinel Service Controller")

    @app.get("/health", response_model=HealthResponse)
    def health():
        producers = [
            ProducerModel(name=p.name, alive=p.alive, restarts=p.restarts, last_error=p.last_error)
            for p in runtime.list_producers()
        ]
        master_known = runtime.current_master() is not None
        ok = master_known and all(p.alive for p in producers)
        body = HealthResponse(
            status="healthy" if ok else "degraded",
            master_known=master_known,
            queued=channel.qsize() if channel else 0,
            dropped=channel.dropped if channel else 0,
            producers=producers,
        )
        if not ok:
            return JSONResponse(status_code=503, content=body.model_dump())
        return body

    @app.get("/master", response_model=MasterResponse)
    def master():
        snap = runtime.snapshot()
        addr = snap["master"]
        if addr is None:
            raise HTTPException(status_code=404, detail="Master not known yet")
        return MasterResponse(
            master_name=master_name,
            address=AddressModel(host=addr.host, port=addr.port),
            source=snap["source"],
            applied_at=snap["applied_at"],
            updates_applied=snap["updates_applied"],
        )

    @app.get("/events", response_model=list[EventModel])
    def events(limit: int = Query(50, ge=1, le=1000)):
        return latest_events(limit)

    return app


def serve_in_thread(app: FastAPI, host: str, port: int) -> Thread:
    server = uvicorn.Server(uvicorn.Config(app, host=host, port=port, log_level="warning"))
    thr = Thread(target=server.run, name="rssc-status-api", daemon=True)
    thr.start()
    log_event("INFO", f"Status API listening on http://{host}:{port}")
    return thr
