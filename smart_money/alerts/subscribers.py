"""Built-in alert subscribers."""

import json
import logging
import sys
from typing import Optional, TextIO

from .models import SmartMoneyAlert

logger = logging.getLogger(__name__)


class LoggingAlertSubscriber:
    """Writes every alert to the log."""

    def __init__(self, level: int = logging.INFO):
        self.level = level

    def on_alert(self, alert: SmartMoneyAlert) -> None:
        logger.log(
            self.level,
            f"[ALERT] {alert.wallet_label} {alert.action.value.upper()} "
            f"{alert.token_symbol} amount={alert.amount:,.2f} value={alert.value:,.4f} | "
            f"WR {alert.metrics.win_rate:.1f}% ROI {alert.metrics.total_roi:+.1f}% "
            f"30d {alert.metrics.last_30_days_pnl:+.4f}"
        )


class JsonLinesAlertSubscriber:
    """Writes every alert as one JSON object per line, for piping into other tools."""

    def __init__(self, stream: Optional[TextIO] = None):
        self.stream = stream or sys.stdout

    def on_alert(self, alert: SmartMoneyAlert) -> None:
        self.stream.write(json.dumps(alert.to_dict()) + "\n")
        self.stream.flush()
