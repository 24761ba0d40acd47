"""LivenessSupervisor 단위 테스트"""

import asyncio
import json

import pytest
from starlette.websockets import WebSocketState

from signaling.core.webrtc_config import WSCloseCode
from signaling.services.liveness import LivenessSupervisor


async def join(relay, connection, room: str) -> None:
    await relay.handle_text(connection, json.dumps({"type": "join", "room": room}))


@pytest.mark.asyncio
async def test_sweep_evicts_closed_socket(relay, fake_websocket, sent):
    """소켓이 닫힌 연결은 정리되고 남은 참여자에게 peer-left"""
    x = await relay.connect(fake_websocket())
    y = await relay.connect(fake_websocket())
    await join(relay, x, "r1")
    await join(relay, y, "r1")
    sent(y)

    x.websocket.client_state = WebSocketState.DISCONNECTED
    evicted = await LivenessSupervisor(relay).sweep()

    assert evicted == [x.id]
    assert sent(y) == [{"type": "peer-left", "id": x.id}]
    x.websocket.close.assert_awaited_once_with(code=WSCloseCode.GOING_AWAY, reason="Connection not alive")
    y.websocket.close.assert_not_awaited()


@pytest.mark.asyncio
async def test_sweep_evicts_slow_consumer(relay, fake_websocket):
    """송신 실패로 dead 표시된 연결도 정리"""
    x = await relay.connect(fake_websocket())
    x.alive = False

    assert await LivenessSupervisor(relay).sweep() == [x.id]
    assert len(relay.registry) == 0


@pytest.mark.asyncio
async def test_sweep_keeps_live_connections(relay, fake_websocket):
    x = await relay.connect(fake_websocket())

    assert await LivenessSupervisor(relay).sweep() == []
    assert x.id in relay.registry


@pytest.mark.asyncio
async def test_sweep_ignores_close_errors(relay, fake_websocket):
    """이미 닫힌 소켓 close 실패는 무시"""
    x = await relay.connect(fake_websocket())
    x.alive = False
    x.websocket.close.side_effect = RuntimeError("already closed")

    assert await LivenessSupervisor(relay).sweep() == [x.id]


@pytest.mark.asyncio
async def test_supervisor_runs_periodically(relay, fake_websocket):
    """start 후 주기적으로 sweep, stop 으로 종료"""
    supervisor = LivenessSupervisor(relay, interval=0.01)
    x = await relay.connect(fake_websocket())
    x.alive = False

    supervisor.start()
    for _ in range(50):
        if x.id not in relay.registry:
            break
        await asyncio.sleep(0.01)
    await supervisor.stop()

    assert x.id not in relay.registry
    assert supervisor._task is None


@pytest.mark.asyncio
async def test_stop_without_start(relay):
    await LivenessSupervisor(relay).stop()
