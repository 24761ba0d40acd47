"""WebSocket 연결 레지스트리 - 연결 ID 발급 및 생존 상태 관리"""

import asyncio
import json
import logging
from collections.abc import Iterator
from dataclasses import dataclass, field
from uuid import uuid4

from fastapi import WebSocket
from starlette.websockets import WebSocketState

logger = logging.getLogger(__name__)


@dataclass(eq=False)
class Connection:
    """클라이언트 하나와의 WebSocket 연결"""

    id: str
    websocket: WebSocket
    room: str | None = None
    # join 시 지정한 참여자 식별자 (미지정 시 연결 ID)
    identity: str | None = None
    alive: bool = True
    outbox: asyncio.Queue = field(default_factory=asyncio.Queue)

    @property
    def is_connected(self) -> bool:
        """전송 계층 연결이 아직 열려 있는지 여부"""
        return (
            self.websocket.client_state == WebSocketState.CONNECTED
            and self.websocket.application_state == WebSocketState.CONNECTED
        )

    def send(self, message: dict) -> bool:
        """메시지를 송신 큐에 적재 (대기하지 않음)

        큐가 가득 차면 느린 소비자로 보고 연결을 dead로 표시한다.

        Returns:
            적재 성공 여부
        """
        if not self.alive:
            return False

        try:
            self.outbox.put_nowait(json.dumps(message))
        except asyncio.QueueFull:
            logger.warning(f"Outbox full for connection {self.id}, marking as dead")
            self.alive = False
            return False
        return True

    async def drain(self) -> None:
        """송신 큐를 순서대로 소켓에 기록 (연결별 writer 태스크)"""
        while True:
            frame = await self.outbox.get()
            try:
                await self.websocket.send_text(frame)
            except Exception as e:
                logger.warning(f"Failed to send message to {self.id}: {e}")
                self.alive = False
                return


class ConnectionRegistry:
    """살아 있는 연결의 ID와 현재 방 정보 관리"""

    def __init__(self, send_queue_size: int = 256):
        self._send_queue_size = send_queue_size
        # connection_id -> Connection
        self._connections: dict[str, Connection] = {}

    def register(self, websocket: WebSocket) -> Connection:
        """새 연결 등록 (128비트 랜덤 ID 발급)"""
        connection = Connection(
            id=str(uuid4()),
            websocket=websocket,
            outbox=asyncio.Queue(maxsize=self._send_queue_size),
        )
        self._connections[connection.id] = connection
        return connection

    def unregister(self, connection_id: str) -> Connection | None:
        """연결 해제 - 이미 해제된 ID면 None 반환 (멱등)"""
        connection = self._connections.pop(connection_id, None)
        if connection is None:
            return None

        connection.alive = False
        connection.room = None
        return connection

    def get(self, connection_id: str) -> Connection | None:
        return self._connections.get(connection_id)

    def __contains__(self, connection_id: object) -> bool:
        return connection_id in self._connections

    def __iter__(self) -> Iterator[Connection]:
        return iter(list(self._connections.values()))

    def __len__(self) -> int:
        return len(self._connections)
