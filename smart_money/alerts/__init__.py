"""Smart money alert module."""

from .emitter import AlertEmitter
from .models import AlertMetrics, SmartMoneyAlert
from .subscribers import JsonLinesAlertSubscriber, LoggingAlertSubscriber

__all__ = [
    "AlertEmitter",
    "AlertMetrics",
    "SmartMoneyAlert",
    "JsonLinesAlertSubscriber",
    "LoggingAlertSubscriber",
]
