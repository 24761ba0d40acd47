import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import PlainTextResponse

from signaling import __version__
from signaling.api.endpoints.signaling import websocket_endpoint
from signaling.api.router import api_router
from signaling.core.config import Settings, get_settings
from signaling.core.redis import close_redis
from signaling.core.telemetry import get_relay_metrics, instrument_fastapi, setup_telemetry
from signaling.services.ice_service import IceServerProvider
from signaling.services.liveness import LivenessSupervisor
from signaling.services.rate_limiter import build_rate_limiter
from signaling.services.signaling_service import SignalingRelay

# 로깅 설정
logging.basicConfig(
    level=get_settings().log_level.upper(),
    format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    datefmt="%Y-%m-%d %H:%M:%S",
)

logger = logging.getLogger(__name__)


def create_app(settings: Settings | None = None) -> FastAPI:
    """FastAPI 애플리케이션 생성

    릴레이 상태는 앱 인스턴스마다 따로 가지므로 테스트에서 격리된 앱을 만들 수 있다.
    """
    settings = settings or get_settings()

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """애플리케이션 라이프사이클"""
        # 시작 시: Telemetry 초기화, liveness 감시 시작
        if settings.otel_enabled:
            setup_telemetry("meet-signaling", __version__, settings.otel_endpoint)
            relay_metrics = get_relay_metrics()
            if relay_metrics is not None:
                app.state.relay.metrics = relay_metrics

        supervisor = LivenessSupervisor(app.state.relay, settings.ping_interval)
        supervisor.start()
        logger.info(f"Signaling relay ready on {settings.ws_path}")
        yield
        # 종료 시
        await supervisor.stop()
        await app.state.relay.close_all()
        await close_redis()

    app = FastAPI(
        title=settings.app_name,
        version=__version__,
        debug=settings.debug,
        description="WebRTC signaling relay for meeting rooms",
        lifespan=lifespan,
    )

    app.state.settings = settings
    app.state.relay = SignalingRelay(
        send_queue_size=settings.send_queue_size,
        max_room_size=settings.max_room_size,
        max_message_size=settings.max_message_size,
    )
    app.state.ice_provider = IceServerProvider(settings)
    app.state.rate_limiter = build_rate_limiter(
        settings.redis_url,
        settings.turn_rate_limit,
        settings.turn_rate_window,
    )

    # OpenTelemetry FastAPI 계측
    if settings.otel_enabled:
        instrument_fastapi(app)

    # CORS 설정
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # API 라우터 등록
    app.include_router(api_router)
    app.add_api_websocket_route(settings.ws_path, websocket_endpoint)

    @app.get("/health", response_class=PlainTextResponse)
    async def health_check() -> str:
        """헬스 체크"""
        return "OK"

    return app


app = create_app()
