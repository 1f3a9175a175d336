"""Monitoring module for cartonfit.

Provides selection metrics and Telegram notifications.
"""

from .metrics import (
    PackingMetrics,
    export_to_csv,
    export_to_json,
    format_summary,
)
from .telegram_notifier import (
    format_failure,
    format_selection_result,
    send_telegram,
)

__all__ = [
    # Metrics
    "PackingMetrics",
    "export_to_csv",
    "export_to_json",
    "format_summary",
    # Telegram
    "send_telegram",
    "format_selection_result",
    "format_failure",
]
