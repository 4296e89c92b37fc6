"""
FastAPI server for the flash arbitrage dashboard.

REST endpoints drive the scan engine; a websocket pushes engine events
to connected clients as `{"type", "data"}` JSON.
"""

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from dataclasses import asdict
from typing import Any

import orjson
from fastapi import FastAPI, HTTPException, Request, WebSocket, WebSocketDisconnect
from pydantic import BaseModel, Field

from flasharb import __version__
from flasharb.config.constants import (
    CHAIN_IDS,
    ETHERSCAN_TX_URL,
    MAX_SLIPPAGE_CHOICES,
    MIN_PROFIT_THRESHOLD_CHOICES,
    SUPPORTED_CHAINS,
)
from flasharb.config.settings import get_settings
from flasharb.core.engine import ScanEngine, build_engine
from flasharb.core.errors import (
    ExecutionError,
    OpportunityNotFoundError,
    ProfitabilityCheckError,
)
from flasharb.core.event_bus import Event
from flasharb.core.models import ExecutionSettingsUpdate, GasSettingsUpdate
from flasharb.market.providers import NodeProvider, ProviderConfigStore
from flasharb.strategy.opportunity import price_table
from flasharb.telemetry.logger import setup_logging


logger = logging.getLogger(__name__)


# =============================================================================
# Request Models
# =============================================================================


class ProfitabilityRequest(BaseModel):
    gas_price_gwei: float | None = Field(default=None, gt=0.0)


class ChainRequest(BaseModel):
    chain: str


class ProviderKeyRequest(BaseModel):
    api_key: str = Field(min_length=1)


# =============================================================================
# WebSocket Clients
# =============================================================================


class ClientHub:
    """Connected websocket clients and event fan-out."""

    def __init__(self) -> None:
        self._clients: list[WebSocket] = []

    def add(self, websocket: WebSocket) -> None:
        self._clients.append(websocket)

    def remove(self, websocket: WebSocket) -> None:
        if websocket in self._clients:
            self._clients.remove(websocket)

    async def send(self, websocket: WebSocket, message: dict[str, Any]) -> None:
        await websocket.send_text(orjson.dumps(message).decode())

    async def broadcast(self, event: Event) -> None:
        """Send an engine event to every client, dropping dead ones."""
        if not self._clients:
            return

        message = orjson.dumps(event.to_message()).decode()
        disconnected = []
        for client in self._clients:
            try:
                await client.send_text(message)
            except Exception:
                disconnected.append(client)
        for client in disconnected:
            self.remove(client)

    def __len__(self) -> int:
        return len(self._clients)


# =============================================================================
# App
# =============================================================================


def create_app(
    engine: ScanEngine | None = None,
    store: ProviderConfigStore | None = None,
) -> FastAPI:
    """
    Build the dashboard app.

    Args:
        engine: Engine to serve; built from settings at startup when None.
        store: Provider key store; defaults to the settings path.
    """

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        settings = get_settings() if engine is None else engine.settings
        app.state.store = store or ProviderConfigStore(settings.provider_store_path)
        app.state.engine = engine or build_engine(settings, app.state.store)
        app.state.hub = ClientHub()
        app.state.engine.event_bus.subscribe_all(app.state.hub.broadcast)
        yield
        await app.state.engine.close()

    app = FastAPI(title="Flash Arbitrage Scanner", version=__version__, lifespan=lifespan)

    app.get("/api/status")(get_status)
    app.post("/api/scan/start")(start_scan)
    app.post("/api/scan/stop")(stop_scan)
    app.get("/api/opportunities")(list_opportunities)
    app.post("/api/opportunities/{opportunity_id}/profitability")(check_profitability)
    app.post("/api/opportunities/{opportunity_id}/execute")(execute_opportunity)
    app.get("/api/prices")(get_prices)
    app.get("/api/stats")(get_stats)
    app.get("/api/settings/execution")(get_execution_settings)
    app.put("/api/settings/execution")(update_execution_settings)
    app.get("/api/settings/gas")(get_gas_settings)
    app.put("/api/settings/gas")(update_gas_settings)
    app.get("/api/chains")(list_chains)
    app.post("/api/chain")(select_chain)
    app.put("/api/providers/{provider}")(save_provider_key)
    app.websocket("/ws")(websocket_endpoint)
    return app


def _engine(request: Request) -> ScanEngine:
    return request.app.state.engine


# =============================================================================
# Scanning
# =============================================================================


async def get_status(request: Request) -> dict[str, Any]:
    return _engine(request).status()


async def start_scan(request: Request) -> dict[str, Any]:
    started = await _engine(request).start()
    return {"status": "started" if started else "already_running"}


async def stop_scan(request: Request) -> dict[str, Any]:
    stopped = await _engine(request).stop()
    return {"status": "stopped" if stopped else "not_running"}


async def list_opportunities(request: Request) -> list[dict[str, Any]]:
    engine = _engine(request)
    rows = []
    for opportunity in engine.opportunities:
        check = engine.executor.last_check(opportunity.id)
        rows.append({**opportunity.to_dict(), "profitability": check.to_dict() if check else None})
    return rows


async def check_profitability(
    opportunity_id: str,
    request: Request,
    body: ProfitabilityRequest | None = None,
) -> dict[str, Any]:
    gas_price = body.gas_price_gwei if body else None
    try:
        result = await _engine(request).check_profitability(opportunity_id, gas_price)
    except OpportunityNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e)) from e
    except ProfitabilityCheckError as e:
        raise HTTPException(status_code=502, detail=str(e)) from e
    return result.to_dict()


async def execute_opportunity(opportunity_id: str, request: Request) -> dict[str, Any]:
    try:
        result = await _engine(request).execute(opportunity_id)
    except OpportunityNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e)) from e
    except ProfitabilityCheckError as e:
        raise HTTPException(status_code=502, detail=str(e)) from e
    except ExecutionError as e:
        raise HTTPException(status_code=409, detail=str(e)) from e

    response = result.to_dict()
    if result.is_success and not result.simulated:
        response["explorer_url"] = f"{ETHERSCAN_TX_URL}{result.tx_hash}"
    return response


# =============================================================================
# Market Data & Stats
# =============================================================================


async def get_prices(request: Request) -> list[dict[str, Any]]:
    return [
        {
            "pair": pair.name,
            "token0": pair.token0,
            "token1": pair.token1,
            "prices": [asdict(row) for row in price_table(pair.prices)],
        }
        for pair in _engine(request).latest_pairs
    ]


async def get_stats(request: Request) -> dict[str, Any]:
    engine = _engine(request)
    return {**engine.metrics.to_dict(), "executions": engine.executor.stats}


# =============================================================================
# Settings
# =============================================================================


async def get_execution_settings(request: Request) -> dict[str, Any]:
    return {
        **_engine(request).execution_settings.model_dump(),
        "options": {
            "min_profit_threshold": list(MIN_PROFIT_THRESHOLD_CHOICES),
            "max_slippage": list(MAX_SLIPPAGE_CHOICES),
        },
    }


async def update_execution_settings(
    update: ExecutionSettingsUpdate,
    request: Request,
) -> dict[str, Any]:
    updated = await _engine(request).update_execution_settings(update)
    return updated.model_dump()


async def get_gas_settings(request: Request) -> dict[str, Any]:
    engine = _engine(request)
    gas_price = engine.effective_gas_price()
    return {
        **engine.gas_settings.model_dump(),
        "effective_gas_price": gas_price,
        "estimated_max_fee": engine.gas_settings.estimated_max_fee(gas_price),
    }


async def update_gas_settings(update: GasSettingsUpdate, request: Request) -> dict[str, Any]:
    updated = await _engine(request).update_gas_settings(update)
    return updated.model_dump()


async def list_chains(request: Request) -> list[dict[str, Any]]:
    selected = _engine(request).chain
    return [
        {"key": key, "name": name, "chain_id": CHAIN_IDS[key], "selected": key == selected}
        for key, name in SUPPORTED_CHAINS.items()
    ]


async def select_chain(body: ChainRequest, request: Request) -> dict[str, Any]:
    engine = _engine(request)
    try:
        await engine.select_chain(body.chain)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e)) from e
    return engine.status()


async def save_provider_key(
    provider: str,
    body: ProviderKeyRequest,
    request: Request,
) -> dict[str, Any]:
    try:
        node_provider = NodeProvider(provider.lower())
    except ValueError as e:
        raise HTTPException(status_code=404, detail=f"Unknown provider {provider!r}") from e

    engine = _engine(request)
    config = request.app.state.store.save(node_provider, body.api_key)

    active = node_provider.value == engine.settings.node_provider
    if active:
        await engine.reconnect()

    return {
        "provider": node_provider.value,
        "name": config.name,
        "active": active,
        "status": engine.status(),
    }


# =============================================================================
# WebSocket
# =============================================================================


async def websocket_endpoint(websocket: WebSocket) -> None:
    engine: ScanEngine = websocket.app.state.engine
    hub: ClientHub = websocket.app.state.hub

    await websocket.accept()
    hub.add(websocket)

    await hub.send(websocket, {"type": "init", "data": engine.status()})
    await hub.send(
        websocket,
        {"type": "opportunities", "data": [o.to_dict() for o in engine.opportunities]},
    )

    try:
        while True:
            data = await websocket.receive_text()
            try:
                msg = orjson.loads(data)
            except orjson.JSONDecodeError:
                continue
            if not isinstance(msg, dict):
                continue
            if msg.get("action") == "start":
                await engine.start()
            elif msg.get("action") == "stop":
                await engine.stop()
    except WebSocketDisconnect:
        pass
    finally:
        hub.remove(websocket)


app = create_app()


def main() -> None:
    import uvicorn

    settings = get_settings()
    queue_logging = setup_logging(level=settings.log_level, log_file=settings.log_file)

    print(
        f"""
╔═══════════════════════════════════════════════════════════════╗
║           FLASH ARBITRAGE SCANNER - DASHBOARD                 ║
╚═══════════════════════════════════════════════════════════════╝

Dashboard API: http://{settings.dashboard_host}:{settings.dashboard_port}
Press Ctrl+C to stop.
    """
    )
    try:
        uvicorn.run(
            "flasharb.dashboard.server:app",
            host=settings.dashboard_host,
            port=settings.dashboard_port,
            reload=False,
            log_level="warning",
        )
    finally:
        queue_logging.stop()


if __name__ == "__main__":
    main()
