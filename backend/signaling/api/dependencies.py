"""공유 API dependencies - 엔드포인트 간 중복 제거"""

import hmac
from typing import Annotated

from fastapi import Depends, Header, HTTPException, Request, status

from signaling.core.config import Settings
from signaling.services.ice_service import IceServerProvider
from signaling.services.signaling_service import SignalingRelay


def get_app_settings(request: Request) -> Settings:
    """앱에 주입된 설정"""
    return request.app.state.settings


def get_relay(request: Request) -> SignalingRelay:
    """앱이 소유한 시그널링 릴레이"""
    return request.app.state.relay


def get_ice_provider(request: Request) -> IceServerProvider:
    """ICE 서버 제공자"""
    return request.app.state.ice_provider


# ===== /turn 보호 Dependencies =====


async def verify_api_key(
    settings: Annotated[Settings, Depends(get_app_settings)],
    x_api_key: Annotated[str | None, Header()] = None,
) -> None:
    """turn_api_key 가 설정된 경우 X-API-Key 헤더 검증"""
    if not settings.turn_api_key:
        return

    if not x_api_key or not hmac.compare_digest(x_api_key, settings.turn_api_key):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail={"error": "UNAUTHORIZED", "message": "Invalid or missing API key"},
        )


async def enforce_rate_limit(request: Request) -> None:
    """클라이언트 주소별 요청 수 제한"""
    limiter = request.app.state.rate_limiter
    if limiter is None:
        return

    client_host = request.client.host if request.client else "unknown"
    if not await limiter.hit(client_host):
        raise HTTPException(
            status_code=status.HTTP_429_TOO_MANY_REQUESTS,
            detail={"error": "RATE_LIMITED", "message": "Too many requests"},
        )
