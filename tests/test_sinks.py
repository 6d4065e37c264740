import logging

from prometheus_client import CollectorRegistry

from monitor.events import Alert, LevelUpdate
from monitor.sinks.log_sink import LoggingEventSink
from monitor.sinks.metrics_sink import MetricsEventSink


def test_metrics_sink_tracks_levels_and_alerts() -> None:
    registry = CollectorRegistry()
    sink = MetricsEventSink(registry=registry)

    sink.handle_event(LevelUpdate(db_value=91.5, category_label="Very Loud", above_threshold=True, last_class_label=None))
    sink.handle_event(Alert(db_value=91.5, class_label="Siren", confidence=0.8))
    sink.handle_event(Alert(db_value=95.0, class_label="Siren", confidence=0.6))

    assert registry.get_sample_value("sound_level_db") == 91.5
    assert registry.get_sample_value("sound_above_threshold") == 1.0
    assert registry.get_sample_value("sound_classification_confidence") == 0.6
    assert registry.get_sample_value("sound_alerts_total", {"label": "Siren"}) == 2.0


def test_separate_sinks_do_not_share_instruments() -> None:
    first, second = MetricsEventSink(), MetricsEventSink()
    first.handle_event(Alert(db_value=90.0, class_label="Dog", confidence=0.5))
    assert second.registry.get_sample_value("sound_alerts_total", {"label": "Dog"}) is None


def test_log_sink_reports_alerts_as_warnings(caplog) -> None:
    with caplog.at_level(logging.DEBUG, logger="monitor.sinks.log_sink"):
        sink = LoggingEventSink()
        sink.handle_event(LevelUpdate(db_value=45.0, category_label="Moderate", above_threshold=False, last_class_label="Dog"))
        sink.handle_event(Alert(db_value=88.0, class_label="Siren", confidence=0.9, threshold=80.0))

    records = [r for r in caplog.records if r.name == "monitor.sinks.log_sink"]
    assert [r.levelno for r in records] == [logging.DEBUG, logging.WARNING]
    assert "Siren" in records[-1].getMessage()


def test_sinks_satisfy_listener_protocol() -> None:
    from domain.interfaces import EventListener

    assert isinstance(LoggingEventSink(), EventListener)
    assert isinstance(MetricsEventSink(), EventListener)
