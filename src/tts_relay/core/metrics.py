"""
Prometheus Metrics for tts-relay.

Metrics Exposed:
    tts_relay_requests_total{operation,status}        - Service calls by outcome
    tts_relay_upstream_duration_seconds{operation}    - Remote API latency
    tts_relay_audio_bytes_total                       - Audio bytes written to storage
    tts_relay_cleanup_deleted_total                   - Artifacts removed by the sweeper
    tts_relay_rate_limited_total{scope}               - Requests rejected before the service

Usage:
    from tts_relay.core.metrics import metrics

    metrics.record_request("synthesize", "success", audio_bytes=20480)
    metrics.observe_upstream("synthesize", 1.42)

    content, content_type = metrics.get_metrics_response()

Prometheus Scrape Config Example:
    scrape_configs:
      - job_name: 'tts-relay'
        static_configs:
          - targets: ['localhost:8000']
        metrics_path: '/metrics'
"""
from __future__ import annotations

from prometheus_client import (
    CONTENT_TYPE_LATEST,
    CollectorRegistry,
    Counter,
    Histogram,
    generate_latest,
)


class RelayMetrics:
    """
    Metric collection for the relay.

    Each instance owns its own CollectorRegistry so tests can build a
    fresh collector without clashing with the process-wide one.
    """

    def __init__(self) -> None:
        self._registry = CollectorRegistry()

        self._requests_total = Counter(
            "tts_relay_requests_total",
            "Speech service calls by operation and outcome",
            ["operation", "status"],
            registry=self._registry,
        )

        # ElevenLabs takes 2-10s depending on text length
        self._upstream_duration = Histogram(
            "tts_relay_upstream_duration_seconds",
            "Remote speech API call duration in seconds",
            ["operation"],
            buckets=(0.25, 0.5, 1.0, 2.5, 5.0, 10.0, 20.0, 30.0),
            registry=self._registry,
        )

        self._audio_bytes_total = Counter(
            "tts_relay_audio_bytes_total",
            "Total audio bytes written to storage",
            registry=self._registry,
        )

        self._cleanup_deleted = Counter(
            "tts_relay_cleanup_deleted_total",
            "Audio artifacts deleted by the storage sweeper",
            registry=self._registry,
        )

        self._rate_limited = Counter(
            "tts_relay_rate_limited_total",
            "Requests rejected by the rate limiter",
            ["scope"],
            registry=self._registry,
        )

    @property
    def registry(self) -> CollectorRegistry:
        return self._registry

    def record_request(self, operation: str, status: str, audio_bytes: int = 0) -> None:
        """
        Record a completed service call.

        Args:
            operation: "synthesize" or "list_voices"
            status: "success", or the failure kind name in lower case
            audio_bytes: Size of the stored artifact, if any
        """
        self._requests_total.labels(operation=operation, status=status).inc()
        if audio_bytes > 0:
            self._audio_bytes_total.inc(audio_bytes)

    def observe_upstream(self, operation: str, seconds: float) -> None:
        self._upstream_duration.labels(operation=operation).observe(seconds)

    def record_cleanup(self, deleted: int) -> None:
        if deleted > 0:
            self._cleanup_deleted.inc(deleted)

    def record_rate_limited(self, scope: str) -> None:
        self._rate_limited.labels(scope=scope).inc()

    def get_metrics_response(self) -> tuple[bytes, str]:
        """Return (content, content_type) for the /metrics endpoint."""
        return generate_latest(self._registry), CONTENT_TYPE_LATEST


# Global metrics instance
metrics = RelayMetrics()
