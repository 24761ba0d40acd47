"""방 생성/조회/강퇴 엔드포인트

방 자체는 첫 join 시점에 생성되므로 방 생성 API 는 상태를 만들지 않는다.
"""

import logging
from typing import Annotated
from urllib.parse import quote
from uuid import uuid4

from fastapi import APIRouter, Depends, HTTPException, Request, status

from signaling.api.dependencies import get_app_settings, get_relay
from signaling.core.config import Settings
from signaling.schemas.webrtc import (
    CreateRoomRequest,
    CreateRoomResponse,
    KickRequest,
    KickResponse,
    RoomInfoResponse,
)
from signaling.services.signaling_service import SignalingRelay

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["Rooms"])

KICK_ERRORS = {
    "ROOM_NOT_FOUND": (status.HTTP_404_NOT_FOUND, "Room not found"),
    "NOT_OWNER": (status.HTTP_403_FORBIDDEN, "Only the room owner can kick participants"),
    "PARTICIPANT_NOT_FOUND": (status.HTTP_404_NOT_FOUND, "Participant not found"),
}


@router.post("/create-room", response_model=CreateRoomResponse)
async def create_room(
    request: Request,
    settings: Annotated[Settings, Depends(get_app_settings)],
    body: CreateRoomRequest | None = None,
):
    """방 ID 발급 및 참여 URL 생성"""
    room_id = body.room_id if body and body.room_id else uuid4().hex[:8]

    base_url = settings.public_base_url or str(request.base_url)
    join_url = f"{base_url.rstrip('/')}/join?room={quote(room_id, safe='')}"

    logger.info(f"Room id issued: {room_id}")
    return CreateRoomResponse(room_id=room_id, join_url=join_url)


@router.get("/rooms/{room}", response_model=RoomInfoResponse, response_model_exclude_none=True)
async def get_room(
    room: str,
    relay: Annotated[SignalingRelay, Depends(get_relay)],
):
    """방 참여자 수 및 방장 조회 (없는 방은 0)"""
    return RoomInfoResponse(
        room=room,
        participant_count=len(relay.directory.members(room)),
        owner_identity=relay.owner_identity(room),
    )


@router.post("/kick", response_model=KickResponse)
async def kick_participant(
    relay: Annotated[SignalingRelay, Depends(get_relay)],
    body: KickRequest | None = None,
):
    """방장 요청으로 참여자 강퇴"""
    if body is None or not (body.room_id and body.participant_identity and body.owner_identity):
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail={
                "error": "VALIDATION_ERROR",
                "message": "roomId, participantIdentity and ownerIdentity required",
            },
        )

    try:
        await relay.kick(body.room_id, body.participant_identity, body.owner_identity)
    except ValueError as e:
        code = str(e)
        status_code, message = KICK_ERRORS.get(
            code, (status.HTTP_400_BAD_REQUEST, "Kick failed")
        )
        raise HTTPException(
            status_code=status_code,
            detail={"error": code, "message": message},
        ) from None

    return KickResponse(ok=True)
