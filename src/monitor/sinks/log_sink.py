"""
Logging Event Sink.
Writes level updates and alerts to the application log.

Author: Daniel Collier
GitHub: https://github.com/danielfcollier
Year: 2026
"""

import logging

from ..events import Alert, LevelUpdate

logger = logging.getLogger(__name__)


class LoggingEventSink:
    def handle_event(self, event) -> None:
        if isinstance(event, LevelUpdate):
            marker = "🔺" if event.above_threshold else "  "
            logger.debug(
                f"{marker} 🔊 Sound Level: {event.db_value:05.1f} dB | {event.category_label} | "
                f"Last heard: {event.last_class_label or '-'}"
            )
        elif isinstance(event, Alert):
            logger.warning(
                f"⚠️ Sound Alert! {event.db_value:.0f} dB exceeds your threshold of {event.threshold:.0f} dB "
                f"| {event.class_label} ({event.confidence * 100:.0f}%)"
            )
