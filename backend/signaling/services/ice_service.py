"""ICE 서버 목록 제공 서비스 (STUN + 선택적 TURN)"""

import base64
import hashlib
import hmac
import logging
import time
from collections.abc import Callable

import httpx

from signaling.core.config import Settings
from signaling.core.webrtc_config import DEFAULT_STUN_URLS, TWILIO_TOKENS_URL
from signaling.schemas.webrtc import IceServer

logger = logging.getLogger(__name__)


class IceServerProvider:
    """클라이언트가 peer connection 을 만들 때 사용할 ICE 서버 목록 생성

    TURN 서버는 다음 순서로 처음 성공한 소스를 사용한다.
    1. Twilio NTS 토큰 API
    2. 정적 TURN 자격 증명
    3. 공유 비밀 기반 HMAC 단기 자격 증명
    어떤 소스가 실패해도 예외를 올리지 않고 다음 소스 또는 STUN 만 반환한다.
    """

    def __init__(
        self,
        settings: Settings,
        transport: httpx.AsyncBaseTransport | None = None,
        clock: Callable[[], float] = time.time,
    ):
        """
        Args:
            settings: 애플리케이션 설정
            transport: httpx 전송 계층 (테스트용 MockTransport 주입)
            clock: 현재 시각(초) 반환 함수
        """
        self.settings = settings
        self._transport = transport
        self._clock = clock

    async def get_ice_servers(self) -> list[IceServer]:
        servers = [IceServer(urls=self.settings.stun_url_list or DEFAULT_STUN_URLS)]

        turn_servers = await self.fetch_twilio_servers()
        if not turn_servers:
            turn_servers = self.static_turn_servers()
        if not turn_servers:
            turn_servers = self.hmac_turn_servers()

        servers.extend(turn_servers)
        return servers

    async def fetch_twilio_servers(self) -> list[IceServer]:
        """Twilio NTS 토큰 발급 API 호출"""
        account_sid = self.settings.twilio_account_sid
        auth_token = self.settings.twilio_auth_token
        if not account_sid or not auth_token:
            return []

        url = TWILIO_TOKENS_URL.format(account_sid=account_sid)
        try:
            async with httpx.AsyncClient(
                timeout=httpx.Timeout(self.settings.twilio_timeout),
                transport=self._transport,
            ) as client:
                response = await client.post(
                    url,
                    auth=(account_sid, auth_token),
                    data={"Ttl": str(self.settings.turn_ttl)},
                )
                response.raise_for_status()
                body = response.json()
        except httpx.HTTPStatusError as e:
            logger.warning(f"Twilio token request failed: {e.response.status_code}")
            return []
        except httpx.RequestError as e:
            logger.warning(f"Twilio token request error: {e}")
            return []
        except ValueError as e:
            logger.warning(f"Invalid Twilio token response: {e}")
            return []

        if not isinstance(body, dict):
            logger.warning("Invalid Twilio token response: not an object")
            return []

        servers = []
        for entry in body.get("ice_servers") or []:
            if not isinstance(entry, dict):
                continue
            urls = entry.get("urls") or entry.get("url")
            if not urls:
                continue
            servers.append(
                IceServer(
                    urls=urls,
                    username=entry.get("username"),
                    credential=entry.get("credential"),
                )
            )

        logger.debug(f"Fetched {len(servers)} ICE servers from Twilio")
        return servers

    def static_turn_servers(self) -> list[IceServer]:
        """정적으로 설정된 TURN 서버"""
        urls = self.settings.turn_url_list
        if not urls or not self.settings.turn_username or not self.settings.turn_credential:
            return []

        return [
            IceServer(
                urls=urls,
                username=self.settings.turn_username,
                credential=self.settings.turn_credential,
            )
        ]

    def hmac_turn_servers(self) -> list[IceServer]:
        """공유 비밀로 서명한 단기 TURN 자격 증명 (TURN REST API 방식)"""
        urls = self.settings.turn_url_list
        if not urls or not self.settings.turn_secret:
            return []

        username, credential = generate_turn_credentials(
            self.settings.turn_secret,
            self.settings.turn_user,
            self.settings.turn_ttl,
            now=self._clock(),
        )
        return [IceServer(urls=urls, username=username, credential=credential)]


def generate_turn_credentials(secret: str, user: str, ttl: int, now: float) -> tuple[str, str]:
    """만료 시각이 포함된 username 과 HMAC-SHA1 password 생성

    Returns:
        (username, credential) - username 은 "<만료 unix 시각>:<user>"
    """
    expiry = int(now) + ttl
    username = f"{expiry}:{user}"
    digest = hmac.new(secret.encode("utf-8"), username.encode("utf-8"), hashlib.sha1).digest()
    return username, base64.b64encode(digest).decode("ascii")
