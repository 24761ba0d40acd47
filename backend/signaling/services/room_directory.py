"""방 디렉터리 - 방 이름별 참여자/방장 관리 및 메시지 전달"""

import logging

from signaling.services.connection_registry import ConnectionRegistry

logger = logging.getLogger(__name__)


class RoomDirectory:
    """방 이름 -> 참여 연결 ID (입장 순서 유지)

    방은 첫 입장 시 생성되고 마지막 참여자가 나가면 즉시 삭제된다.
    방장이 나가면 남은 참여자 중 가장 먼저 입장한 연결이 방장이 된다.
    """

    def __init__(self, registry: ConnectionRegistry):
        self._registry = registry
        # room -> {connection_id: None}
        self._rooms: dict[str, dict[str, None]] = {}
        # room -> owner connection_id
        self._owners: dict[str, str] = {}

    def join(self, room: str, connection_id: str) -> list[str]:
        """방에 참여자 추가

        Returns:
            입장 전부터 있던 다른 참여자 ID 목록 (입장 순서)
        """
        members = self._rooms.setdefault(room, {})
        others = [member_id for member_id in members if member_id != connection_id]
        members[connection_id] = None

        logger.info(f"Connection {connection_id} joined room {room} ({len(members)} members)")
        return others

    def leave(self, room: str, connection_id: str) -> bool:
        """방에서 참여자 제거 (빈 방은 삭제, 방장이면 다음 참여자에게 위임)

        Returns:
            실제로 제거했는지 여부 (없던 참여자면 False)
        """
        members = self._rooms.get(room)
        if members is None or connection_id not in members:
            return False

        del members[connection_id]
        if not members:
            del self._rooms[room]
            self._owners.pop(room, None)
            logger.info(f"Room {room} is empty, removed")
            return True

        if self._owners.get(room) == connection_id:
            self._owners[room] = next(iter(members))
            logger.info(f"Room {room} owner changed to {self._owners[room]}")

        logger.info(f"Connection {connection_id} left room {room} ({len(members)} members)")
        return True

    def members(self, room: str) -> set[str]:
        return set(self._rooms.get(room, ()))

    def ordered_members(self, room: str) -> list[str]:
        return list(self._rooms.get(room, ()))

    def is_member(self, room: str, connection_id: str) -> bool:
        return connection_id in self._rooms.get(room, ())

    def has_room(self, room: str) -> bool:
        return room in self._rooms

    @property
    def room_count(self) -> int:
        return len(self._rooms)

    # ===== 방장 =====

    def owner(self, room: str) -> str | None:
        return self._owners.get(room)

    def claim_owner(self, room: str, connection_id: str) -> bool:
        """방장이 없을 때만 참여자를 방장으로 지정

        Returns:
            방장으로 지정되었는지 여부
        """
        if not self.is_member(room, connection_id) or room in self._owners:
            return False

        self._owners[room] = connection_id
        logger.info(f"Connection {connection_id} is now owner of room {room}")
        return True

    # ===== 전송 =====

    def broadcast(self, room: str, message: dict, exclude: str | None = None) -> int:
        """방 참여자 전체에게 메시지 전송 (특정 연결 제외 가능)

        죽은 연결은 건너뛰고 나머지 참여자에게는 계속 전달한다.

        Returns:
            송신 큐에 적재된 메시지 수
        """
        delivered = 0
        for member_id in list(self._rooms.get(room, ())):
            if member_id == exclude:
                continue
            connection = self._registry.get(member_id)
            if connection is None or not connection.alive:
                logger.debug(f"Skipping dead connection {member_id} in room {room}")
                continue
            if connection.send(message):
                delivered += 1
        return delivered

    def send_to(self, room: str, connection_id: str, message: dict) -> bool:
        """방의 특정 참여자에게만 메시지 전송

        Returns:
            대상이 방의 살아 있는 참여자여서 전달했는지 여부
        """
        if not self.is_member(room, connection_id):
            return False

        connection = self._registry.get(connection_id)
        if connection is None or not connection.alive:
            return False
        return connection.send(message)
