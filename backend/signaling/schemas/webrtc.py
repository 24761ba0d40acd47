"""WebRTC 시그널링 관련 Pydantic 스키마"""

from enum import Enum
from typing import Any, Literal

from pydantic import BaseModel, Field, field_validator


class SignalingMessageType(str, Enum):
    """시그널링 메시지 타입"""
    # Client -> Server
    JOIN = "join"
    SIGNAL = "signal"
    LEAVE = "leave"
    # Server -> Client
    JOINED = "joined"
    NEW_PEER = "new-peer"
    PEER_LEFT = "peer-left"
    OWNER_CHANGED = "owner-changed"
    KICKED = "kicked"
    ERROR = "error"


# ===== WebSocket 시그널링 메시지 스키마 (Client -> Server) =====

class JoinMessage(BaseModel):
    """방 입장 메시지

    identity 는 강퇴 요청 시 참여자를 찾는 데 쓰이며, wantOwner 가 참이고
    방장이 없으면 입장한 연결이 방장이 된다.
    """
    type: Literal["join"] = "join"
    room: str = Field(min_length=1)
    identity: str | None = Field(default=None, min_length=1)
    want_owner: bool = Field(default=False, alias="wantOwner")

    class Config:
        populate_by_name = True


class SignalMessage(BaseModel):
    """SDP/ICE candidate 중계 메시지

    payload는 해석하지 않고 그대로 수신자에게 전달한다.
    """
    type: Literal["signal"] = "signal"
    room: str = Field(min_length=1)
    to: str = Field(min_length=1)
    from_: str = Field(alias="from", min_length=1)
    payload: Any

    class Config:
        populate_by_name = True

    @field_validator("payload")
    @classmethod
    def payload_must_be_present(cls, value: Any) -> Any:
        # null, "", 0, false 는 누락으로 취급 ({} 와 [] 는 허용)
        if value is None or (isinstance(value, (str, int, float)) and not value):
            raise ValueError("payload is required")
        return value


class LeaveMessage(BaseModel):
    """방 퇴장 메시지"""
    type: Literal["leave"] = "leave"
    room: str = Field(min_length=1)


# ===== Server -> Client 메시지 =====

class JoinedMessage(BaseModel):
    """입장 완료 메시지 (본인 ID와 기존 참여자 목록)"""
    type: Literal["joined"] = "joined"
    id: str
    others: list[str]


class NewPeerMessage(BaseModel):
    """다른 사용자 입장 알림"""
    type: Literal["new-peer"] = "new-peer"
    id: str


class SignalRelayMessage(BaseModel):
    """수신자에게 전달되는 signal 메시지"""
    type: Literal["signal"] = "signal"
    from_: str = Field(serialization_alias="from")
    payload: Any

    class Config:
        populate_by_name = True


class PeerLeftMessage(BaseModel):
    """다른 사용자 퇴장 알림"""
    type: Literal["peer-left"] = "peer-left"
    id: str


class OwnerChangedMessage(BaseModel):
    """방장 변경 알림 (남은 참여자가 없으면 ownerIdentity 는 null)"""
    type: Literal["owner-changed"] = "owner-changed"
    owner_identity: str | None = Field(alias="ownerIdentity")

    class Config:
        populate_by_name = True


class KickedMessage(BaseModel):
    """강퇴 알림"""
    type: Literal["kicked"] = "kicked"
    reason: str = "kicked_by_owner"


class ErrorMessage(BaseModel):
    """에러 메시지"""
    type: Literal["error"] = "error"
    message: str


# ===== REST 스키마 =====

class IceServer(BaseModel):
    """ICE 서버 설정"""
    urls: str | list[str]
    username: str | None = None
    credential: str | None = None


class IceServersResponse(BaseModel):
    """ICE 서버 목록 응답"""
    ice_servers: list[IceServer] = Field(alias="iceServers")

    class Config:
        populate_by_name = True


class CreateRoomRequest(BaseModel):
    """방 생성 요청 (roomId 생략 시 자동 생성)"""
    room_id: str | None = Field(default=None, alias="roomId")

    class Config:
        populate_by_name = True


class CreateRoomResponse(BaseModel):
    """방 생성 응답"""
    room_id: str = Field(alias="roomId")
    join_url: str = Field(alias="joinUrl")

    class Config:
        populate_by_name = True


class RoomInfoResponse(BaseModel):
    """방 현황 응답 (방장이 없으면 ownerIdentity 생략)"""
    room: str
    participant_count: int = Field(alias="participantCount")
    owner_identity: str | None = Field(default=None, alias="ownerIdentity")

    class Config:
        populate_by_name = True


class KickRequest(BaseModel):
    """참여자 강퇴 요청 (누락 필드는 엔드포인트에서 400 처리)"""
    room_id: str | None = Field(default=None, alias="roomId")
    participant_identity: str | None = Field(default=None, alias="participantIdentity")
    owner_identity: str | None = Field(default=None, alias="ownerIdentity")

    class Config:
        populate_by_name = True


class KickResponse(BaseModel):
    """참여자 강퇴 응답"""
    ok: bool = True
