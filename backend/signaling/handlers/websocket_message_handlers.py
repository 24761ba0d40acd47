"""WebSocket 메시지 핸들러 - Strategy Pattern 구현"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Protocol

from pydantic import ValidationError

from signaling.core.webrtc_config import ErrorMessages
from signaling.schemas.webrtc import (
    ErrorMessage,
    JoinedMessage,
    JoinMessage,
    LeaveMessage,
    NewPeerMessage,
    SignalingMessageType,
    SignalMessage,
    SignalRelayMessage,
)
from signaling.services.connection_registry import Connection

if TYPE_CHECKING:
    from signaling.services.signaling_service import SignalingRelay

logger = logging.getLogger(__name__)


def send_error(connection: Connection, message: str) -> None:
    """요청한 연결에게만 error 메시지 전송"""
    connection.send(ErrorMessage(message=message).model_dump())


class MessageHandler(Protocol):
    """메시지 핸들러 프로토콜"""

    async def handle(self, relay: SignalingRelay, connection: Connection, data: dict) -> None:
        """메시지 처리

        Args:
            relay: 시그널링 릴레이 (레지스트리/디렉터리 소유자)
            connection: 메시지를 보낸 연결
            data: 메시지 데이터
        """
        ...


class JoinHandler:
    """JOIN 메시지 핸들러"""

    async def handle(self, relay: SignalingRelay, connection: Connection, data: dict) -> None:
        try:
            message = JoinMessage.model_validate(data)
        except ValidationError:
            send_error(connection, ErrorMessages.JOIN_MISSING_ROOM)
            return

        room = message.room

        # 이미 같은 방에 있으면 참여자 목록만 다시 전송
        if connection.room == room:
            connection.identity = message.identity or connection.id
            others = [m for m in relay.directory.members(room) if m != connection.id]
            connection.send(JoinedMessage(id=connection.id, others=others).model_dump())
            return

        if relay.max_room_size and len(relay.directory.members(room)) >= relay.max_room_size:
            logger.info(f"Room {room} is full, rejecting {connection.id}")
            send_error(connection, ErrorMessages.ROOM_FULL)
            return

        # 다른 방에 있었다면 먼저 퇴장 처리
        if connection.room is not None:
            relay.leave_room(connection)

        others = relay.directory.join(room, connection.id)
        connection.room = room
        connection.identity = message.identity or connection.id
        if message.want_owner:
            relay.directory.claim_owner(room, connection.id)

        connection.send(JoinedMessage(id=connection.id, others=others).model_dump())
        relay.directory.broadcast(
            room,
            NewPeerMessage(id=connection.id).model_dump(),
            exclude=connection.id,
        )


class SignalHandler:
    """SIGNAL 메시지 핸들러 - 지정된 수신자에게만 payload 전달"""

    async def handle(self, relay: SignalingRelay, connection: Connection, data: dict) -> None:
        try:
            message = SignalMessage.model_validate(data)
        except ValidationError:
            send_error(connection, ErrorMessages.SIGNAL_MISSING_FIELDS)
            return

        delivered = relay.directory.send_to(
            message.room,
            message.to,
            SignalRelayMessage(from_=message.from_, payload=message.payload).model_dump(by_alias=True),
        )

        if delivered:
            relay.metrics.signals_relayed.add(1)
        else:
            # 수신자가 이미 나갔을 수 있으므로 발신자에게 알리지 않음
            logger.debug(f"Dropped signal from {connection.id} to {message.to} in room {message.room}")
            relay.metrics.signals_dropped.add(1)


class LeaveHandler:
    """LEAVE 메시지 핸들러"""

    async def handle(self, relay: SignalingRelay, connection: Connection, data: dict) -> None:
        try:
            message = LeaveMessage.model_validate(data)
        except ValidationError:
            send_error(connection, ErrorMessages.LEAVE_MISSING_ROOM)
            return

        relay.leave_room(connection, message.room)


# 핸들러 레지스트리
HANDLERS: dict[str, MessageHandler] = {
    SignalingMessageType.JOIN.value: JoinHandler(),
    SignalingMessageType.SIGNAL.value: SignalHandler(),
    SignalingMessageType.LEAVE.value: LeaveHandler(),
}


async def dispatch_message(relay: SignalingRelay, connection: Connection, data: dict) -> None:
    """메시지 타입에 따라 적절한 핸들러로 디스패치

    타입이 없거나 알 수 없으면 error를 응답하고 연결 상태는 유지한다.

    Args:
        relay: 시그널링 릴레이
        connection: 메시지를 보낸 연결
        data: 파싱된 메시지 데이터
    """
    msg_type = data.get("type")
    if not msg_type or not isinstance(msg_type, str):
        send_error(connection, ErrorMessages.MISSING_TYPE)
        return

    handler = HANDLERS.get(msg_type)
    if handler is None:
        logger.warning(f"Unknown message type: {msg_type}")
        send_error(connection, ErrorMessages.UNKNOWN_TYPE.format(msg_type=msg_type))
        return

    relay.metrics.messages_received.add(1, {"type": msg_type})
    await handler.handle(relay, connection, data)
