"""연결 liveness 감시 - 주기적으로 죽은 연결을 정리"""

import asyncio
import logging

from signaling.core.webrtc_config import WSCloseCode
from signaling.services.signaling_service import SignalingRelay

logger = logging.getLogger(__name__)


class LivenessSupervisor:
    """주기적 liveness 검사

    전송 계층 ping/pong 은 uvicorn(ws_ping_interval, ws_ping_timeout)이 담당하고,
    여기서는 전송 실패로 dead 표시된 연결이나 이미 닫힌 소켓을 찾아
    leave 와 같은 정리 경로를 태운다.
    """

    def __init__(self, relay: SignalingRelay, interval: float = 30.0):
        self.relay = relay
        self.interval = interval
        self._task: asyncio.Task | None = None

    def start(self) -> None:
        if self._task is None or self._task.done():
            self._task = asyncio.create_task(self._run())
            logger.info(f"Liveness supervisor started (interval={self.interval}s)")

    async def stop(self) -> None:
        if self._task is None:
            return

        self._task.cancel()
        try:
            await self._task
        except asyncio.CancelledError:
            pass
        self._task = None
        logger.info("Liveness supervisor stopped")

    async def _run(self) -> None:
        while True:
            await asyncio.sleep(self.interval)
            try:
                await self.sweep()
            except Exception as e:
                logger.error(f"Liveness sweep failed: {e}", exc_info=True)

    async def sweep(self) -> list[str]:
        """죽은 연결 정리 후 소켓 종료

        Returns:
            정리된 연결 ID 목록
        """
        evicted = await self.relay.evict_dead()
        for connection in evicted:
            try:
                await connection.websocket.close(code=WSCloseCode.GOING_AWAY, reason="Connection not alive")
            except Exception as e:
                logger.debug(f"Error closing WebSocket {connection.id}: {e}")
        return [connection.id for connection in evicted]
