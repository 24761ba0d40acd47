from functools import lru_cache

from pydantic_settings import BaseSettings, SettingsConfigDict


def split_urls(value: str) -> list[str]:
    """쉼표로 구분된 URL 문자열을 리스트로 변환"""
    return [url.strip() for url in value.split(",") if url.strip()]


class Settings(BaseSettings):
    """애플리케이션 설정"""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
    )

    # 앱 설정
    app_name: str = "Meet Signaling Relay"
    debug: bool = False
    host: str = "0.0.0.0"
    port: int = 5000
    log_level: str = "INFO"

    # CORS
    cors_origins: list[str] = ["*"]

    # WebSocket 시그널링
    ws_path: str = "/ws"
    ping_interval: float = 30.0
    ping_timeout: float = 20.0
    max_message_size: int = 64 * 1024
    send_queue_size: int = 256
    max_room_size: int = 0  # 0이면 제한 없음

    # ICE 서버 (쉼표 구분)
    stun_urls: str = "stun:stun.l.google.com:19302"
    turn_urls: str = ""

    # 정적 TURN 자격 증명
    turn_username: str = ""
    turn_credential: str = ""

    # HMAC 기반 단기 TURN 자격 증명
    turn_secret: str = ""
    turn_user: str = "webrtc"
    turn_ttl: int = 3600

    # Twilio Network Traversal Service
    twilio_account_sid: str = ""
    twilio_auth_token: str = ""
    twilio_timeout: float = 5.0

    # /turn 엔드포인트 보호
    turn_api_key: str = ""
    turn_rate_limit: int = 0  # 0이면 비활성화
    turn_rate_window: int = 60

    # Redis (rate limit 카운터, 비어 있으면 메모리 사용)
    redis_url: str = ""

    # 방 생성 시 joinUrl 기준 주소 (비어 있으면 요청 주소 사용)
    public_base_url: str = ""

    # OpenTelemetry
    otel_enabled: bool = False
    otel_endpoint: str = "http://localhost:4317"

    @property
    def stun_url_list(self) -> list[str]:
        return split_urls(self.stun_urls)

    @property
    def turn_url_list(self) -> list[str]:
        return split_urls(self.turn_urls)


@lru_cache
def get_settings() -> Settings:
    """설정 싱글톤 반환"""
    return Settings()
