"""
Prometheus Metrics Sink.
Exposes the monitor's level updates and alerts for Grafana scraping.

Author: Daniel Collier
GitHub: https://github.com/danielfcollier
Year: 2026
"""

import logging

from prometheus_client import CollectorRegistry, Counter, Gauge, start_http_server

from ..events import Alert, LevelUpdate

logger = logging.getLogger(__name__)

PORT_PROMETHEUS_SERVER = 8000


class MetricsEventSink:
    """
    Listener that mirrors events into Prometheus instruments.
    Each instance owns its registry, so several sinks (e.g. in tests) never clash.
    """

    def __init__(self, registry: CollectorRegistry | None = None):
        self.registry = registry or CollectorRegistry()

        # 1. Audio Physics
        self._g_db = Gauge("sound_level_db", "Approximate sound pressure level (dB SPL)", registry=self.registry)
        self._g_above = Gauge("sound_above_threshold", "1 while the level is at or above threshold", registry=self.registry)

        # 2. AI & Events
        self._g_conf = Gauge("sound_classification_confidence", "Confidence of the last alert label", registry=self.registry)
        self._c_alerts = Counter("sound_alerts", "Total alerts fired", ["label"], registry=self.registry)

    def start(self, port: int = PORT_PROMETHEUS_SERVER):
        """
        Starts the Prometheus HTTP server.
        :param port: The HTTP port to expose metrics on.
        """
        try:
            start_http_server(port, registry=self.registry)
            logger.info(f"📊 Metrics Service started on port {port}")
        except Exception as e:
            logger.error(f"❌ Failed to start metrics server: {e}")

    def handle_event(self, event) -> None:
        if isinstance(event, LevelUpdate):
            self._g_db.set(event.db_value)
            self._g_above.set(1 if event.above_threshold else 0)
        elif isinstance(event, Alert):
            self._g_conf.set(event.confidence)
            self._c_alerts.labels(label=event.class_label).inc()
