"""
FastAPI server for the MEV dashboard.

Exposes the simulation engine as a JSON API and forwards every engine
event to connected WebSocket clients.
"""

import logging
from collections.abc import AsyncIterator, Mapping
from contextlib import asynccontextmanager
from dataclasses import dataclass, field
from typing import Any

import orjson
from fastapi import Body, FastAPI, HTTPException, WebSocket, WebSocketDisconnect
from fastapi.responses import Response
from pydantic import BaseModel, ValidationError

from mev_dashboard import __version__
from mev_dashboard.config.settings import Settings, get_settings
from mev_dashboard.core.engine import SimulationEngine
from mev_dashboard.core.event_bus import Event, EventType, Subscription
from mev_dashboard.core.types import OpportunityKind


logger = logging.getLogger(__name__)


def _default(obj: Any) -> Any:
    """Serialize the types orjson does not handle natively."""
    if isinstance(obj, BaseModel):
        return obj.model_dump(mode="json")
    if isinstance(obj, Mapping):
        return dict(obj)
    raise TypeError(f"Type {type(obj).__name__} is not JSON serializable")


def dumps(data: Any) -> bytes:
    """Encode a payload for the API and the WebSocket."""
    return orjson.dumps(data, default=_default, option=orjson.OPT_NON_STR_KEYS)


def json_response(data: Any, status_code: int = 200) -> Response:
    """Build an orjson-encoded response."""
    return Response(content=dumps(data), status_code=status_code, media_type="application/json")


@dataclass
class DashboardState:
    """Engine and connected clients of one app instance."""

    engine: SimulationEngine | None = None
    clients: list[WebSocket] = field(default_factory=list)
    subscriptions: list[Subscription] = field(default_factory=list)

    def require_engine(self) -> SimulationEngine:
        if self.engine is None:
            raise HTTPException(status_code=503, detail="Engine not initialized")
        return self.engine

    async def broadcast(self, event: Event[Any]) -> None:
        """Send an event to every client, dropping the ones that fail."""
        if not self.clients:
            return

        message = dumps(
            {
                "type": event.type.name.lower(),
                "source": event.source,
                "timestamp_us": event.timestamp_us,
                "data": event.payload,
            }
        ).decode()

        disconnected = []
        for client in self.clients:
            try:
                await client.send_text(message)
            except Exception as e:
                logger.debug(f"Dropping WebSocket client: {e}")
                disconnected.append(client)
        for client in disconnected:
            if client in self.clients:
                self.clients.remove(client)


def create_app(
    settings: Settings | None = None,
    engine: SimulationEngine | None = None,
) -> FastAPI:
    """
    Create the dashboard application.

    The engine is created on startup when not supplied, started by the
    lifespan and stopped on shutdown.

    Args:
        settings: Application settings (loaded from the environment if None).
        engine: Pre-built engine, mainly for tests.

    Returns:
        Configured FastAPI app.
    """
    state = DashboardState(engine=engine)

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        if state.engine is None:
            state.engine = SimulationEngine(settings or get_settings())
        bus = state.engine.event_bus
        state.subscriptions = [bus.subscribe(event_type, state.broadcast) for event_type in EventType]

        await state.engine.start()
        try:
            yield
        finally:
            await state.engine.stop()
            for subscription in state.subscriptions:
                subscription.cancel()
            state.subscriptions = []

    app = FastAPI(title="Solana MEV Dashboard", version=__version__, lifespan=lifespan)
    app.state.dashboard = state

    @app.get("/api/status")
    async def get_status() -> Response:
        return json_response(state.require_engine().status())

    @app.get("/api/prices")
    async def get_prices() -> Response:
        cache = state.require_engine().price_cache
        return json_response(
            {
                "timestamp_ms": cache.last_refresh_ms,
                "prices": cache.snapshot(),
            }
        )

    @app.get("/api/opportunities")
    async def get_opportunities() -> Response:
        return json_response(state.require_engine().feed.latest)

    @app.get("/api/history")
    async def get_history(limit: int = 50) -> Response:
        engine = state.require_engine()
        return json_response(
            {
                "summary": engine.history.summary().to_dict(),
                "trades": engine.trade_log.entries(limit=max(0, limit)),
            }
        )

    @app.get("/api/gas")
    async def get_gas() -> Response:
        gas = state.require_engine().gas_tracker
        return json_response({"latest": gas.latest, "history": gas.history})

    @app.get("/api/analytics")
    async def get_analytics(token: str | None = None) -> Response:
        analytics = state.require_engine().analytics
        if token is None:
            return json_response(analytics.to_dict())
        analysis = analytics.analyze(token)
        if analysis is None:
            raise HTTPException(status_code=404, detail=f"No price history for {token}")
        return json_response({**analysis.to_dict(), "history": analytics.history(token)})

    @app.get("/api/settings")
    async def get_user_settings() -> Response:
        engine = state.require_engine()
        return json_response(
            {"settings": engine.user_settings, "tick_interval_ms": engine.tick_interval_ms}
        )

    @app.put("/api/settings")
    async def put_user_settings(changes: dict[str, Any] = Body(...)) -> Response:
        engine = state.require_engine()
        changes = dict(changes)
        tick_interval_ms = changes.pop("tick_interval_ms", None)

        # Checked before anything is applied so a rejected request changes nothing
        if tick_interval_ms is not None and (
            isinstance(tick_interval_ms, bool)
            or not isinstance(tick_interval_ms, int)
            or tick_interval_ms <= 0
        ):
            return json_response(
                {"detail": "tick_interval_ms must be a positive integer"},
                status_code=422,
            )

        try:
            updated = await engine.update_settings(**changes) if changes else engine.user_settings
        except ValidationError as e:
            return json_response(
                {"detail": e.errors(include_url=False, include_context=False)},
                status_code=422,
            )

        if tick_interval_ms is not None:
            await engine.set_tick_interval(tick_interval_ms)

        return json_response({"settings": updated, "tick_interval_ms": engine.tick_interval_ms})

    @app.post("/api/start")
    async def start_engine() -> Response:
        engine = state.require_engine()
        if engine.is_running:
            return json_response({"status": "already_running"})
        await engine.start()
        return json_response({"status": "started"})

    @app.post("/api/stop")
    async def stop_engine() -> Response:
        engine = state.require_engine()
        if not engine.is_running:
            return json_response({"status": "not_running"})
        await engine.stop()
        return json_response({"status": "stopped"})

    @app.post("/api/execute/{kind}/{index}")
    async def execute_opportunity(kind: OpportunityKind, index: int) -> Response:
        engine = state.require_engine()
        bucket = engine.feed.latest.bucket(kind)
        if not 0 <= index < len(bucket):
            raise HTTPException(
                status_code=404,
                detail=f"No {kind.value} opportunity at index {index}",
            )
        outcome = await engine.execute(bucket[index])
        return json_response(outcome)

    @app.websocket("/ws")
    async def websocket_endpoint(websocket: WebSocket) -> None:
        await websocket.accept()
        state.clients.append(websocket)

        engine = state.require_engine()
        await websocket.send_text(dumps({"type": "init", "data": engine.status()}).decode())

        try:
            while True:
                msg = orjson.loads(await websocket.receive_text())
                action = msg.get("action") if isinstance(msg, dict) else None
                if action == "start":
                    await engine.start()
                elif action == "stop":
                    await engine.stop()
        except WebSocketDisconnect:
            pass
        except orjson.JSONDecodeError:
            logger.warning("Closing WebSocket after malformed message")
            await websocket.close(code=1003)
        finally:
            if websocket in state.clients:
                state.clients.remove(websocket)

    return app


def main(settings: Settings | None = None) -> None:
    """Run the dashboard with uvicorn."""
    import uvicorn

    settings = settings or get_settings()
    print(
        f"""
╔═══════════════════════════════════════════════════════════════╗
║              SOLANA MEV DASHBOARD - API SERVER                ║
╚═══════════════════════════════════════════════════════════════╝

API: http://{settings.dashboard_host}:{settings.dashboard_port}/api/status
Press Ctrl+C to stop.
    """
    )
    uvicorn.run(
        create_app(settings),
        host=settings.dashboard_host,
        port=settings.dashboard_port,
        log_level="warning",
    )


if __name__ == "__main__":
    main()
