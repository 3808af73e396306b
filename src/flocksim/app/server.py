from __future__ import annotations

import asyncio
import json
import math
from collections import deque
from dataclasses import asdict, dataclass
from pathlib import Path
from typing import Dict, List

from fastapi import FastAPI, HTTPException, WebSocket, WebSocketDisconnect
from fastapi.responses import FileResponse, JSONResponse
from fastapi.staticfiles import StaticFiles
from loguru import logger

from ..sim.core.config import AppConfig, SimulationConfig
from ..sim.core.world import World

MIN_SPEED_MULTIPLIER = 0.1
MAX_SPEED_MULTIPLIER = 5.0


@dataclass(frozen=True)
class Frame:
    tick: int
    payload: str


@dataclass
class ViewerCursor:
    sent: int = -1
    acked: int = -1


class FrameBacklog:
    """Encoded frames waiting for every viewer to acknowledge them, oldest first.

    Bounded by ``limit``: a viewer that never acks loses its oldest frames
    instead of growing the backlog.
    """

    def __init__(self, limit: int):
        self._frames: deque[Frame] = deque(maxlen=max(1, limit))

    def __len__(self) -> int:
        return len(self._frames)

    def ticks(self) -> List[int]:
        return [frame.tick for frame in self._frames]

    def push(self, frame: Frame) -> None:
        self._frames.append(frame)

    def after(self, tick: int) -> List[Frame]:
        return [frame for frame in self._frames if frame.tick > tick]

    def drop_through(self, tick: int) -> None:
        while self._frames and self._frames[0].tick <= tick:
            self._frames.popleft()

    def keep_latest(self) -> None:
        while len(self._frames) > 1:
            self._frames.popleft()

    def clear(self) -> None:
        self._frames.clear()


class SimulationController:
    def __init__(self, config: SimulationConfig, broadcast_interval: int = 1, backlog_limit: int = 120):
        self.config = config
        self.world = World(config)
        self.broadcast_interval = max(1, broadcast_interval)
        self.running = False
        self.tick = 0
        self.speed_multiplier = 1.0
        self.backlog = FrameBacklog(backlog_limit)
        self._viewers: Dict[WebSocket, ViewerCursor] = {}
        self._world_lock = asyncio.Lock()
        self._backlog_lock = asyncio.Lock()
        self._loop_task: asyncio.Task | None = None

    @property
    def viewer_count(self) -> int:
        return len(self._viewers)

    async def start(self) -> None:
        if self._loop_task is None:
            self._loop_task = asyncio.create_task(self._run())
            self._loop_task.add_done_callback(self._on_loop_done)
            logger.info("Simulation loop started at {:.1f} ticks/s", 1.0 / self.config.time_step)
        self.running = True

    async def stop(self) -> None:
        self.running = False

    async def shutdown(self) -> None:
        self.running = False
        if self._loop_task is not None:
            self._loop_task.cancel()

    def _on_loop_done(self, task: asyncio.Task) -> None:
        self._loop_task = None
        self.running = False
        if task.cancelled():
            return
        error = task.exception()
        if error is not None:
            logger.opt(exception=error).error("Simulation loop stopped at tick {}", self.tick)

    async def reset(self) -> None:
        async with self._world_lock:
            self.world.reset()
            self.tick = 0
        async with self._backlog_lock:
            self.backlog.clear()
        for cursor in self._viewers.values():
            cursor.sent = cursor.acked = -1
        logger.info("Simulation reset")
        await self.publish()

    async def _run(self) -> None:
        while True:
            await asyncio.sleep(self.config.time_step / self.speed_multiplier)
            if not self.running:
                continue
            async with self._world_lock:
                self.world.step(self.tick)
                self.tick += 1
            if self.tick % self.broadcast_interval == 0:
                await self.publish()

    async def connect(self, socket: WebSocket) -> None:
        self._viewers[socket] = ViewerCursor()
        logger.info("Viewer connected ({} total)", len(self._viewers))
        await self._flush(socket)

    def disconnect(self, socket: WebSocket) -> None:
        if self._viewers.pop(socket, None) is not None:
            logger.info("Viewer disconnected ({} left)", len(self._viewers))

    async def acknowledge(self, socket: WebSocket, tick: int) -> None:
        cursor = self._viewers.get(socket)
        if cursor is None:
            return
        cursor.acked = max(cursor.acked, tick)
        oldest = min(viewer.acked for viewer in self._viewers.values())
        async with self._backlog_lock:
            self.backlog.drop_through(oldest)

    async def handle_message(self, socket: WebSocket, text: str) -> None:
        """Viewers send `{"type": "ack", "tick": N}` after drawing frame N."""
        try:
            message = json.loads(text)
        except json.JSONDecodeError:
            logger.debug("Ignoring malformed viewer message")
            return
        if not isinstance(message, dict) or message.get("type") != "ack":
            return
        tick = message.get("tick")
        if isinstance(tick, int) and not isinstance(tick, bool):
            await self.acknowledge(socket, tick)

    def _encode_frame(self) -> Frame:
        snapshot = self.world.snapshot(self.tick)
        message = {
            "type": "snapshot",
            "tick": snapshot.tick,
            "payload": {
                "tick": snapshot.tick,
                "metrics": asdict(snapshot.metrics),
                "agents": snapshot.agents,
                "world": asdict(snapshot.world),
                "metadata": asdict(snapshot.metadata),
            },
        }
        return Frame(tick=snapshot.tick, payload=json.dumps(message))

    async def _flush(self, socket: WebSocket) -> None:
        cursor = self._viewers.get(socket)
        if cursor is None:
            return
        async with self._backlog_lock:
            pending = self.backlog.after(cursor.sent)
        for frame in pending:
            await socket.send_text(frame.payload)
            cursor.sent = frame.tick

    async def publish(self) -> None:
        frame = self._encode_frame()
        async with self._backlog_lock:
            self.backlog.push(frame)
            if not self._viewers:
                # a viewer that joins later starts from the current frame
                self.backlog.keep_latest()
        dropped: List[WebSocket] = []
        for socket in list(self._viewers):
            try:
                await self._flush(socket)
            except (WebSocketDisconnect, RuntimeError) as error:
                logger.debug("Send failed: {}", error)
                dropped.append(socket)
        for socket in dropped:
            self.disconnect(socket)


app_config = AppConfig()
app = FastAPI(title="Flock Simulation")
controller = SimulationController(
    app_config.simulation, app_config.broadcast_interval, app_config.backlog_limit
)
static_dir = Path(__file__).parent / "static"
app.mount("/static", StaticFiles(directory=static_dir), name="static")


@app.on_event("startup")
async def _startup() -> None:
    await controller.start()


@app.on_event("shutdown")
async def _shutdown() -> None:
    await controller.shutdown()


@app.get("/")
async def index() -> FileResponse:
    return FileResponse(static_dir / "index.html")


@app.get("/api/status")
async def status() -> JSONResponse:
    metrics = controller.world.snapshot(controller.tick).metrics
    return JSONResponse(
        {
            "running": controller.running,
            "tick": controller.tick,
            "flock_size": len(controller.world.agents),
            "viewers": controller.viewer_count,
            "backlog": len(controller.backlog),
            "speed_multiplier": controller.speed_multiplier,
            "metrics": asdict(metrics),
        }
    )


@app.get("/api/config")
async def get_config() -> JSONResponse:
    return JSONResponse(asdict(controller.config))


@app.get("/api/agents/{agent_id}")
async def get_agent(agent_id: int) -> JSONResponse:
    agents = controller.world.agents
    if agent_id < 0 or agent_id >= len(agents):
        raise HTTPException(status_code=404, detail=f"No agent with id {agent_id}")
    agent = agents[agent_id]
    return JSONResponse(
        {
            "id": agent.id,
            "position": [agent.position.x, agent.position.y],
            "velocity": [agent.velocity.x, agent.velocity.y],
            "estimate": [agent.estimate.x, agent.estimate.y],
            "skipped_updates": agent.estimator.skipped_updates,
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
    try:
        requested = float(payload.get("multiplier", 1.0))
    except (TypeError, ValueError):
        raise HTTPException(status_code=422, detail="multiplier must be a number")
    if not math.isfinite(requested):
        raise HTTPException(status_code=422, detail="multiplier must be finite")
    controller.speed_multiplier = min(MAX_SPEED_MULTIPLIER, max(MIN_SPEED_MULTIPLIER, requested))
    return JSONResponse({"multiplier": controller.speed_multiplier})


@app.websocket("/ws")
async def websocket_endpoint(websocket: WebSocket) -> None:
    await websocket.accept()
    try:
        await controller.connect(websocket)
        while True:
            await controller.handle_message(websocket, await websocket.receive_text())
    except WebSocketDisconnect as error:
        logger.debug("Viewer closed with code {}", error.code)
    finally:
        controller.disconnect(websocket)


__all__ = ["app", "controller"]
