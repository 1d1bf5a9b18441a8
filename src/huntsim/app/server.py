from __future__ import annotations

import asyncio
import json
import logging
import os
from collections import deque
from dataclasses import asdict, dataclass
from pathlib import Path
from typing import Dict, Set

from fastapi import FastAPI, HTTPException, WebSocket, WebSocketDisconnect
from fastapi.responses import JSONResponse
from pydantic import BaseModel
from pygame.math import Vector2

from ..sim.core.config import AppConfig, SimulationConfig
from ..sim.core.world import World
from ..sim.types.snapshot import Snapshot

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class QueuedSnapshot:
    tick: int
    payload: str


class ProjectileRequest(BaseModel):
    x: float
    y: float
    dx: float
    dy: float


class PlayerSteerRequest(BaseModel):
    dx: float
    dy: float


def _snapshot_message(snapshot: Snapshot) -> str:
    return json.dumps(
        {
            "type": "snapshot",
            "tick": snapshot.tick,
            "payload": {
                "tick": snapshot.tick,
                "metrics": asdict(snapshot.metrics),
                "agents": snapshot.agents,
                "projectiles": snapshot.projectiles,
                "world": asdict(snapshot.world),
                "metadata": asdict(snapshot.metadata),
            },
        }
    )


class SimulationController:
    def __init__(self, config: SimulationConfig, broadcast_interval: int = 1):
        self.config = config
        self.world = World(config)
        self.broadcast_interval = max(1, broadcast_interval)
        self.running = False
        self.tick = 0
        self.speed_multiplier = 1.0
        self.clients: Set[WebSocket] = set()
        self._client_last_sent: Dict[WebSocket, int] = {}
        self._snapshot_queue: deque[QueuedSnapshot] = deque()
        self._lock = asyncio.Lock()
        self._queue_lock = asyncio.Lock()
        self._broadcast_task: asyncio.Task | None = None

    async def start(self) -> None:
        if self._broadcast_task is None:
            self._broadcast_task = asyncio.create_task(self._loop())
        self.running = True

    async def stop(self) -> None:
        self.running = False

    async def reset(self) -> None:
        async with self._lock:
            self.world.reset()
            self.tick = 0
        async with self._queue_lock:
            self._snapshot_queue.clear()
        for client in self._client_last_sent:
            self._client_last_sent[client] = -1
        await self._broadcast_snapshot()

    async def fire(self, request: ProjectileRequest) -> int:
        async with self._lock:
            projectile = self.world.fire_projectile(Vector2(request.x, request.y), Vector2(request.dx, request.dy))
        return projectile.id

    async def steer(self, request: PlayerSteerRequest) -> Vector2 | None:
        """Set the player heading; ``None`` when no player is alive."""
        async with self._lock:
            if self.world.player is None:
                return None
            self.world.steer_player(Vector2(request.dx, request.dy))
            return Vector2(self.world.player.velocity)

    async def _loop(self) -> None:
        while True:
            await asyncio.sleep(self.config.time_step / self.speed_multiplier)
            if not self.running:
                continue
            async with self._lock:
                self.world.step(self.tick)
                self.tick += 1
            if self.tick % self.broadcast_interval == 0:
                await self._broadcast_snapshot()

    async def acknowledge(self, tick: int) -> None:
        async with self._queue_lock:
            while self._snapshot_queue and self._snapshot_queue[0].tick <= tick:
                self._snapshot_queue.popleft()

    def _serialize_snapshot(self) -> QueuedSnapshot:
        snapshot = self.world.snapshot(self.tick)
        return QueuedSnapshot(tick=snapshot.tick, payload=_snapshot_message(snapshot))

    async def _send_pending_snapshots(self, client: WebSocket) -> None:
        last_sent = self._client_last_sent.get(client, -1)
        async with self._queue_lock:
            pending = [item for item in self._snapshot_queue if item.tick > last_sent]
        for item in pending:
            await client.send_text(item.payload)
            last_sent = item.tick
        self._client_last_sent[client] = last_sent

    async def _broadcast_snapshot(self) -> None:
        queued = self._serialize_snapshot()
        async with self._queue_lock:
            self._snapshot_queue.append(queued)
        stale: Set[WebSocket] = set()
        for client in self.clients:
            try:
                await self._send_pending_snapshots(client)
            except WebSocketDisconnect:
                stale.add(client)
        for client in stale:
            logger.info("dropping disconnected client")
            self.clients.discard(client)
            self._client_last_sent.pop(client, None)


def _load_app_config() -> AppConfig:
    app_config = AppConfig()
    path = os.environ.get("HUNTSIM_CONFIG")
    if path:
        app_config.simulation = SimulationConfig.from_yaml(Path(path))
    interval = os.environ.get("HUNTSIM_BROADCAST_INTERVAL")
    if interval:
        app_config.broadcast_interval = int(interval)
    return app_config


app = FastAPI(title="Huntsim Simulation")
_app_config = _load_app_config()
controller = SimulationController(_app_config.simulation, _app_config.broadcast_interval)


@app.on_event("startup")
async def _startup() -> None:
    await controller.start()


@app.get("/api/status")
async def status() -> JSONResponse:
    world = controller.world
    player = world.player
    return JSONResponse(
        {
            "running": controller.running,
            "tick": controller.tick,
            "sim_time": world.time,
            "population": {
                species.value: population.count for species, population in world.populations.items()
            },
            "player": None if player is None else {"id": player.id, "x": player.position.x, "y": player.position.y},
            "metrics": None if world.metrics is None else asdict(world.metrics),
        }
    )


@app.post("/api/control/start")
async def start_simulation() -> JSONResponse:
    await controller.start()
    return JSONResponse({"running": True})


@app.post("/api/control/stop")
async def stop_simulation() -> JSONResponse:
    await controller.stop()
    return JSONResponse({"running": False})


@app.post("/api/control/reset")
async def reset_simulation() -> JSONResponse:
    await controller.reset()
    return JSONResponse({"running": controller.running, "tick": controller.tick})


@app.post("/api/control/speed")
async def set_speed(payload: dict) -> JSONResponse:
    speed = float(payload.get("multiplier", 1.0))
    controller.speed_multiplier = max(0.1, min(5.0, speed))
    return JSONResponse({"multiplier": controller.speed_multiplier})


@app.post("/api/projectiles")
async def fire_projectile(request: ProjectileRequest) -> JSONResponse:
    projectile_id = await controller.fire(request)
    return JSONResponse({"id": projectile_id})


@app.post("/api/player/steer")
async def steer_player(request: PlayerSteerRequest) -> JSONResponse:
    velocity = await controller.steer(request)
    if velocity is None:
        raise HTTPException(status_code=404, detail="no player in the arena")
    return JSONResponse({"vx": velocity.x, "vy": velocity.y})


async def _handle_client_message(payload: dict) -> None:
    kind = payload.get("type")
    if kind == "ack":
        tick = payload.get("tick")
        if isinstance(tick, int):
            await controller.acknowledge(tick)
    elif kind == "steer":
        dx, dy = payload.get("dx"), payload.get("dy")
        if isinstance(dx, (int, float)) and isinstance(dy, (int, float)):
            await controller.steer(PlayerSteerRequest(dx=dx, dy=dy))


@app.websocket("/ws")
async def websocket_endpoint(websocket: WebSocket) -> None:
    await websocket.accept()
    controller.clients.add(websocket)
    controller._client_last_sent[websocket] = -1
    await controller._send_pending_snapshots(websocket)
    try:
        while True:
            message = await websocket.receive_text()
            try:
                payload = json.loads(message)
            except json.JSONDecodeError:
                continue
            if isinstance(payload, dict):
                await _handle_client_message(payload)
    except WebSocketDisconnect:
        controller.clients.discard(websocket)
        controller._client_last_sent.pop(websocket, None)


__all__ = ["app", "controller"]
