import asyncio
import json

from loguru import logger

from flocksim.app.server import SimulationController
from flocksim.sim.core.config import SimulationConfig


class FakeSocket:
    def __init__(self) -> None:
        self.sent: list[str] = []

    async def send_text(self, payload: str) -> None:
        self.sent.append(payload)


class ClosedSocket:
    async def send_text(self, payload: str) -> None:
        raise RuntimeError('Cannot call "send" once a close message has been sent.')


class JoiningSocket(FakeSocket):
    """Connects another viewer while a frame is being sent to it."""

    def __init__(self, controller: SimulationController) -> None:
        super().__init__()
        self.controller = controller
        self.joined = FakeSocket()

    async def send_text(self, payload: str) -> None:
        await super().send_text(payload)
        if self.joined not in self.controller._viewers:
            await self.controller.connect(self.joined)


def _ticks(client: FakeSocket) -> list[int]:
    return [json.loads(payload)["tick"] for payload in client.sent]


def test_backlog_trims_to_oldest_ack_across_viewers() -> None:
    controller = SimulationController(SimulationConfig(flock_size=5))
    fast, slow = FakeSocket(), FakeSocket()

    async def exercise() -> None:
        await controller.connect(fast)
        await controller.connect(slow)
        for tick in (1, 2, 3):
            controller.tick = tick
            await controller.publish()
        assert controller.backlog.ticks() == [1, 2, 3]
        await controller.acknowledge(fast, 3)
        assert controller.backlog.ticks() == [1, 2, 3]
        await controller.acknowledge(slow, 1)
        assert controller.backlog.ticks() == [2, 3]
        await controller.acknowledge(slow, 3)
        assert controller.backlog.ticks() == []

    asyncio.run(exercise())


def test_viewers_receive_each_frame_once() -> None:
    controller = SimulationController(SimulationConfig(flock_size=3))
    client = FakeSocket()

    async def exercise() -> None:
        await controller.connect(client)
        controller.tick = 1
        await controller.publish()
        controller.world.step(1)
        controller.tick = 2
        await controller.publish()

    asyncio.run(exercise())

    assert _ticks(client) == [1, 2]
    body = json.loads(client.sent[-1])["payload"]
    assert body["world"] == {"width": 800.0, "height": 600.0}
    assert len(body["agents"]) == 3
    assert {"x", "y", "ex", "ey"} <= set(body["agents"][0])


def test_backlog_holds_only_latest_frame_without_viewers() -> None:
    controller = SimulationController(SimulationConfig(flock_size=2))

    async def exercise() -> None:
        for tick in range(500):
            controller.tick = tick
            await controller.publish()
        late = FakeSocket()
        await controller.connect(late)
        assert _ticks(late) == [499]

    asyncio.run(exercise())
    assert len(controller.backlog) == 1


def test_backlog_is_bounded_when_a_viewer_never_acks() -> None:
    controller = SimulationController(SimulationConfig(flock_size=2), backlog_limit=16)
    silent = FakeSocket()

    async def exercise() -> None:
        await controller.connect(silent)
        for tick in range(200):
            controller.tick = tick
            await controller.publish()

    asyncio.run(exercise())
    assert len(controller.backlog) == 16
    assert controller.backlog.ticks()[0] == 184
    assert len(silent.sent) == 200


def test_viewer_joining_mid_broadcast_does_not_break_loop() -> None:
    controller = SimulationController(SimulationConfig(flock_size=2))
    joining = JoiningSocket(controller)

    async def exercise() -> None:
        await controller.connect(joining)
        controller.tick = 1
        await controller.publish()
        controller.tick = 2
        await controller.publish()

    asyncio.run(exercise())
    assert controller.viewer_count == 2
    assert _ticks(joining) == [1, 2]
    assert _ticks(joining.joined) == [1, 2]


def test_closed_socket_is_dropped_and_others_still_served() -> None:
    controller = SimulationController(SimulationConfig(flock_size=2))
    healthy = FakeSocket()

    async def exercise() -> None:
        await controller.connect(healthy)
        await controller.connect(ClosedSocket())
        assert controller.viewer_count == 2
        controller.tick = 1
        await controller.publish()

    asyncio.run(exercise())
    assert controller.viewer_count == 1
    assert _ticks(healthy) == [1]


def test_reset_clears_backlog_and_restarts_ticks() -> None:
    controller = SimulationController(SimulationConfig(flock_size=4))

    async def exercise() -> None:
        controller.tick = 7
        controller.world.step(0)
        await controller.publish()
        await controller.reset()
        assert controller.tick == 0
        assert controller.backlog.ticks() == [0]

    asyncio.run(exercise())
    assert all(agent.position.x == 400.0 for agent in controller.world.agents)


def test_loop_failure_is_logged_and_stops_the_run() -> None:
    controller = SimulationController(SimulationConfig(flock_size=2, time_step=0.001))
    errors: list[str] = []
    handler = logger.add(errors.append, level="ERROR", format="{message}")

    def broken_step(tick: int):
        raise ValueError("boom")

    controller.world.step = broken_step

    async def exercise() -> None:
        await controller.start()
        for _ in range(100):
            await asyncio.sleep(0.005)
            if errors:
                break
        # let the done callback finish before the event loop closes
        await asyncio.sleep(0)

    try:
        asyncio.run(exercise())
    finally:
        logger.remove(handler)

    assert controller.running is False
    assert controller._loop_task is None
    assert any("Simulation loop stopped" in message for message in errors)


def test_viewer_messages_only_ack_with_integer_ticks() -> None:
    controller = SimulationController(SimulationConfig(flock_size=2))
    viewer = FakeSocket()

    async def exercise() -> None:
        await controller.connect(viewer)
        for tick in (1, 2):
            controller.tick = tick
            await controller.publish()
        for text in ("not json", "[1, 2]", '{"type": "hello", "tick": 2}', '{"type": "ack", "tick": "2"}', '{"type": "ack", "tick": true}'):
            await controller.handle_message(viewer, text)
        assert controller.backlog.ticks() == [1, 2]
        await controller.handle_message(viewer, '{"type": "ack", "tick": 1}')
        assert controller.backlog.ticks() == [2]

    asyncio.run(exercise())
