import uvicorn

from signaling.core.config import get_settings


def main() -> None:
    """시그널링 서버 실행

    전송 계층 ping 주기/타임아웃으로 응답 없는 클라이언트를 끊는다.
    """
    settings = get_settings()
    uvicorn.run(
        "signaling.main:app",
        host=settings.host,
        port=settings.port,
        log_level=settings.log_level.lower(),
        ws_ping_interval=settings.ping_interval,
        ws_ping_timeout=settings.ping_timeout,
    )


if __name__ == "__main__":
    main()
