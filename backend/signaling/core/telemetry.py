"""OpenTelemetry 계측 설정

릴레이 프로세스의 OTel 초기화 로직과 시그널링 메트릭을 제공합니다.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from opentelemetry import metrics, trace
from opentelemetry.exporter.otlp.proto.grpc.metric_exporter import OTLPMetricExporter
from opentelemetry.exporter.otlp.proto.grpc.trace_exporter import OTLPSpanExporter
from opentelemetry.sdk.metrics import MeterProvider
from opentelemetry.sdk.metrics.export import PeriodicExportingMetricReader
from opentelemetry.sdk.resources import Resource
from opentelemetry.sdk.trace import TracerProvider
from opentelemetry.sdk.trace.export import BatchSpanProcessor
from opentelemetry.semconv.resource import ResourceAttributes

if TYPE_CHECKING:
    from fastapi import FastAPI

logger = logging.getLogger(__name__)


def init_telemetry(
    service_name: str,
    service_version: str,
    otlp_endpoint: str,
) -> metrics.Meter:
    """OpenTelemetry 초기화

    Args:
        service_name: 서비스 이름 (예: "meet-signaling")
        service_version: 서비스 버전
        otlp_endpoint: OTLP 수신 엔드포인트

    Returns:
        Meter 인스턴스
    """
    resource = Resource.create(
        {
            ResourceAttributes.SERVICE_NAME: service_name,
            ResourceAttributes.SERVICE_VERSION: service_version,
        }
    )

    tracer_provider = TracerProvider(resource=resource)
    tracer_provider.add_span_processor(
        BatchSpanProcessor(OTLPSpanExporter(endpoint=otlp_endpoint, insecure=True))
    )
    trace.set_tracer_provider(tracer_provider)

    metric_reader = PeriodicExportingMetricReader(
        OTLPMetricExporter(endpoint=otlp_endpoint, insecure=True),
        export_interval_millis=10000,  # 10초마다 export
    )
    meter_provider = MeterProvider(resource=resource, metric_readers=[metric_reader])
    metrics.set_meter_provider(meter_provider)

    logger.info(
        "Telemetry initialized: service=%s, endpoint=%s",
        service_name,
        otlp_endpoint,
    )

    return metrics.get_meter(service_name, service_version)


def instrument_fastapi(app: FastAPI) -> None:
    """FastAPI 자동 계측"""
    try:
        from opentelemetry.instrumentation.fastapi import FastAPIInstrumentor

        FastAPIInstrumentor.instrument_app(app)
        logger.info("FastAPI instrumentation enabled")
    except Exception as e:
        logger.warning("Failed to instrument FastAPI: %s", e)


# ===========================================
# 시그널링 릴레이 메트릭
# ===========================================


class RelayMetrics:
    """시그널링 릴레이 커스텀 메트릭"""

    def __init__(self, meter: metrics.Meter):
        self.meter = meter
        self.connections_opened = meter.create_counter(
            name="signaling_connections_opened_total",
            description="WebSocket 연결 수립 수",
        )
        self.connections_closed = meter.create_counter(
            name="signaling_connections_closed_total",
            description="WebSocket 연결 정리 수",
        )
        self.connections_evicted = meter.create_counter(
            name="signaling_connections_evicted_total",
            description="liveness 검사로 강제 정리된 연결 수",
        )
        self.messages_received = meter.create_counter(
            name="signaling_messages_received_total",
            description="타입별 수신 메시지 수",
        )
        self.signals_relayed = meter.create_counter(
            name="signaling_signals_relayed_total",
            description="수신자에게 전달된 signal 메시지 수",
        )
        self.signals_dropped = meter.create_counter(
            name="signaling_signals_dropped_total",
            description="수신자가 없어 버려진 signal 메시지 수",
        )


# ===========================================
# 싱글톤 인스턴스 및 접근자
# ===========================================

_meter: metrics.Meter | None = None
_relay_metrics: RelayMetrics | None = None
_initialized: bool = False


def get_meter() -> metrics.Meter:
    """Meter 인스턴스 반환 (초기화 안 된 경우 noop meter 반환)"""
    if _meter is None:
        return metrics.get_meter("signaling-noop")
    return _meter


def get_relay_metrics() -> RelayMetrics | None:
    """릴레이 메트릭 인스턴스 반환 (초기화 안 된 경우 None)"""
    return _relay_metrics


def setup_telemetry(service_name: str, service_version: str, otlp_endpoint: str) -> None:
    """전역 telemetry 설정 (애플리케이션 시작 시 호출)"""
    global _meter, _relay_metrics, _initialized

    if _initialized:
        logger.warning("Telemetry already initialized, skipping")
        return

    _meter = init_telemetry(service_name, service_version, otlp_endpoint)
    _relay_metrics = RelayMetrics(_meter)
    _initialized = True
