"""ICE 서버 설정 엔드포인트"""

import logging
from typing import Annotated

from fastapi import APIRouter, Depends

from signaling.api.dependencies import enforce_rate_limit, get_ice_provider, verify_api_key
from signaling.schemas.webrtc import IceServersResponse
from signaling.services.ice_service import IceServerProvider

logger = logging.getLogger(__name__)

router = APIRouter(tags=["ICE"])


@router.get(
    "/turn",
    response_model=IceServersResponse,
    response_model_exclude_none=True,
    dependencies=[Depends(verify_api_key), Depends(enforce_rate_limit)],
)
@router.get(
    "/api/ice-servers",
    response_model=IceServersResponse,
    response_model_exclude_none=True,
    dependencies=[Depends(verify_api_key), Depends(enforce_rate_limit)],
)
async def get_ice_servers(
    provider: Annotated[IceServerProvider, Depends(get_ice_provider)],
):
    """STUN/TURN 서버 목록 조회"""
    servers = await provider.get_ice_servers()
    logger.debug(f"Provided {len(servers)} ICE servers")
    return IceServersResponse(ice_servers=servers)
