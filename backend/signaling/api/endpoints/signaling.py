"""WebSocket 시그널링 엔드포인트"""

import asyncio
import logging

from fastapi import WebSocket, WebSocketDisconnect

from signaling.services.connection_registry import Connection
from signaling.services.signaling_service import SignalingRelay

logger = logging.getLogger(__name__)


async def websocket_endpoint(websocket: WebSocket):
    """WebSocket 시그널링 엔드포인트

    연결 등록 후 수신 루프를 돌고, 종료 사유와 관계없이 leave 와 같은 정리를 수행한다.
    """
    relay: SignalingRelay = websocket.app.state.relay

    await websocket.accept()
    connection = await relay.connect(websocket)
    writer = asyncio.create_task(connection.drain())

    try:
        await handle_websocket_messages(websocket, relay, connection)
    except WebSocketDisconnect:
        logger.info(f"WebSocket disconnected: {connection.id}")
    except Exception as e:
        logger.error(f"WebSocket error for {connection.id}: {e}")
    finally:
        await relay.disconnect(connection.id)

        writer.cancel()
        try:
            await writer
        except asyncio.CancelledError:
            pass


async def handle_websocket_messages(
    websocket: WebSocket,
    relay: SignalingRelay,
    connection: Connection,
) -> None:
    """WebSocket 메시지 수신 루프"""
    while True:
        message = await websocket.receive()
        if message["type"] == "websocket.disconnect":
            break

        raw = message.get("text")
        if raw is None:
            data = message.get("bytes") or b""
            raw = data.decode("utf-8", errors="replace")

        await relay.handle_text(connection, raw)
