"""pytest 설정 및 공유 fixture

테스트 인프라:
- 테스트용 설정 / 앱 / TestClient
- 가짜 WebSocket 과 격리된 SignalingRelay
- 송신 큐 확인 유틸리티
"""

import json
from collections.abc import Generator
from unittest.mock import AsyncMock, MagicMock

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient
from starlette.websockets import WebSocketState

from signaling.core.config import Settings
from signaling.main import create_app
from signaling.services.connection_registry import Connection
from signaling.services.signaling_service import SignalingRelay


# ===== 테스트 설정 =====


@pytest.fixture
def test_settings() -> Settings:
    """테스트용 설정 (.env 무시)"""
    return Settings(
        _env_file=None,
        debug=True,
        stun_urls="stun:stun.test:3478",
        turn_urls="",
        redis_url="",
        otel_enabled=False,
    )


# ===== FastAPI Client Fixture =====


@pytest.fixture
def app(test_settings: Settings) -> FastAPI:
    """테스트마다 새 릴레이를 가진 앱"""
    return create_app(test_settings)


@pytest.fixture
def client(app: FastAPI) -> Generator[TestClient, None, None]:
    """동기 FastAPI TestClient

    lifespan 과 WebSocket 세션이 같은 이벤트 루프를 쓰도록 context manager 로 연다.
    """
    with TestClient(app) as test_client:
        yield test_client


# ===== 릴레이 Fixture =====


def make_fake_websocket() -> MagicMock:
    """연결 상태가 CONNECTED 인 가짜 WebSocket"""
    websocket = MagicMock()
    websocket.client_state = WebSocketState.CONNECTED
    websocket.application_state = WebSocketState.CONNECTED
    websocket.send_text = AsyncMock()
    websocket.close = AsyncMock()
    return websocket


@pytest.fixture
def fake_websocket():
    """가짜 WebSocket 생성 함수"""
    return make_fake_websocket


@pytest.fixture
def relay() -> SignalingRelay:
    """격리된 시그널링 릴레이"""
    return SignalingRelay(send_queue_size=16)


@pytest.fixture
def sent():
    """연결의 송신 큐를 비우고 JSON 메시지 목록으로 반환"""

    def _sent(connection: Connection) -> list[dict]:
        messages = []
        while not connection.outbox.empty():
            messages.append(json.loads(connection.outbox.get_nowait()))
        return messages

    return _sent
