"""WebSocket 시그널링 서비스 - 연결 수명 주기 및 메시지 처리 직렬화"""

import asyncio
import json
import logging

from fastapi import WebSocket

from signaling.core.telemetry import RelayMetrics, get_meter
from signaling.core.webrtc_config import ErrorMessages, WSCloseCode
from signaling.handlers.websocket_message_handlers import dispatch_message, send_error
from signaling.schemas.webrtc import KickedMessage, OwnerChangedMessage, PeerLeftMessage
from signaling.services.connection_registry import Connection, ConnectionRegistry
from signaling.services.room_directory import RoomDirectory

logger = logging.getLogger(__name__)


class SignalingRelay:
    """시그널링 릴레이

    레지스트리와 방 디렉터리를 소유하며, 모든 메시지 처리와 연결 정리를
    하나의 락으로 직렬화해 방 단위 입장/퇴장 알림 순서를 보장한다.
    """

    def __init__(
        self,
        send_queue_size: int = 256,
        max_room_size: int = 0,
        max_message_size: int = 64 * 1024,
        metrics: RelayMetrics | None = None,
    ):
        self.registry = ConnectionRegistry(send_queue_size)
        self.directory = RoomDirectory(self.registry)
        self.max_room_size = max_room_size
        self.max_message_size = max_message_size
        self.metrics = metrics or RelayMetrics(get_meter())
        self._lock = asyncio.Lock()

    async def connect(self, websocket: WebSocket) -> Connection:
        """새 연결 등록 - join 전까지는 아무 응답도 보내지 않음"""
        async with self._lock:
            connection = self.registry.register(websocket)

        self.metrics.connections_opened.add(1)
        logger.info(f"Client connected: {connection.id}")
        return connection

    async def handle_text(self, connection: Connection, raw: str) -> None:
        """수신 프레임 하나를 끝까지 처리"""
        async with self._lock:
            if connection.id not in self.registry:
                return

            if len(raw.encode("utf-8")) > self.max_message_size:
                send_error(connection, ErrorMessages.MESSAGE_TOO_LARGE)
                return

            try:
                data = json.loads(raw)
            except json.JSONDecodeError:
                logger.warning(f"Invalid JSON received from {connection.id}. Preview: {raw[:100]}")
                send_error(connection, ErrorMessages.INVALID_JSON)
                return

            if not isinstance(data, dict):
                send_error(connection, ErrorMessages.INVALID_JSON)
                return

            try:
                await dispatch_message(self, connection, data)
            except Exception as e:
                logger.error(f"Error processing message from {connection.id}: {e}", exc_info=True)
                send_error(connection, ErrorMessages.INTERNAL_ERROR)

    def leave_room(self, connection: Connection, room: str | None = None) -> bool:
        """방 퇴장 처리 및 남은 참여자에게 peer-left 알림 (방장이었으면 owner-changed 도 알림)

        호출자가 락을 잡고 있어야 한다.

        Returns:
            실제로 방에서 제거되었는지 여부
        """
        room = room or connection.room
        if room is None:
            return False

        if connection.room == room:
            connection.room = None

        was_owner = self.directory.owner(room) == connection.id
        if not self.directory.leave(room, connection.id):
            return False

        self.directory.broadcast(
            room,
            PeerLeftMessage(id=connection.id).model_dump(),
            exclude=connection.id,
        )
        if was_owner and self.directory.has_room(room):
            self.directory.broadcast(
                room,
                OwnerChangedMessage(owner_identity=self.owner_identity(room)).model_dump(by_alias=True),
            )
        return True

    def owner_identity(self, room: str) -> str | None:
        """방장의 참여자 식별자 (방장이 없으면 None)"""
        owner_id = self.directory.owner(room)
        if owner_id is None:
            return None
        owner = self.registry.get(owner_id)
        if owner is None:
            return None
        return owner.identity or owner.id

    def _find_member(self, room: str, identity: str) -> Connection | None:
        for member_id in self.directory.ordered_members(room):
            connection = self.registry.get(member_id)
            if connection is not None and (connection.identity or connection.id) == identity:
                return connection
        return None

    async def kick(self, room: str, participant_identity: str, owner_identity: str) -> Connection:
        """방장 요청으로 참여자 강퇴

        대상에게 kicked 를 보낸 뒤 방에서 제거하고 남은 참여자에게 peer-left 를 알린다.

        Raises:
            ValueError: ROOM_NOT_FOUND, NOT_OWNER, PARTICIPANT_NOT_FOUND
        """
        async with self._lock:
            if not self.directory.has_room(room):
                raise ValueError("ROOM_NOT_FOUND")

            if self.owner_identity(room) != owner_identity:
                raise ValueError("NOT_OWNER")

            target = self._find_member(room, participant_identity)
            if target is None:
                raise ValueError("PARTICIPANT_NOT_FOUND")

            target.send(KickedMessage().model_dump())
            self.leave_room(target, room)

        logger.info(f"Connection {target.id} kicked from room {room} by {owner_identity}")
        return target

    def _cleanup(self, connection_id: str) -> Connection | None:
        connection = self.registry.get(connection_id)
        if connection is None:
            return None

        self.leave_room(connection)
        self.registry.unregister(connection_id)
        self.metrics.connections_closed.add(1)
        logger.info(f"Client disconnected: {connection_id}")
        return connection

    async def disconnect(self, connection_id: str) -> bool:
        """연결 종료 정리 - leave와 동일하게 처리 후 등록 해제 (멱등)

        Returns:
            이번 호출에서 정리했는지 여부
        """
        async with self._lock:
            return self._cleanup(connection_id) is not None

    async def evict_dead(self) -> list[Connection]:
        """죽은 연결(전송 실패, 소켓 종료)을 정리

        Returns:
            정리된 연결 목록 (소켓 종료는 호출자가 처리)
        """
        evicted = []
        async with self._lock:
            for connection in self.registry:
                if connection.alive and connection.is_connected:
                    continue
                if self._cleanup(connection.id) is not None:
                    evicted.append(connection)

        if evicted:
            self.metrics.connections_evicted.add(len(evicted))
            logger.info(f"Evicted {len(evicted)} dead connections")
        return evicted

    async def close_all(self, reason: str = "Server shutting down") -> None:
        """모든 연결 정리 및 소켓 종료 (서버 종료 시)"""
        async with self._lock:
            connections = list(self.registry)
            for connection in connections:
                self._cleanup(connection.id)

        for connection in connections:
            try:
                await connection.websocket.close(code=WSCloseCode.GOING_AWAY, reason=reason)
            except Exception as e:
                logger.debug(f"Error closing WebSocket {connection.id}: {e}")

        if connections:
            logger.info(f"All connections closed ({len(connections)})")
