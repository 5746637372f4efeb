# ==============================================
# TOPIC 4: NOTIFICATION
# ==============================================
#
# Modules:
# --------
# - message.py   → Subject / body rendering from Record + QuickAnalysis
# - notifier.py  → Delivery backends (log, SMTP, webhook)
#
# ==============================================

from .message import NotificationMessage, build_message
from .notifier import (
    LoggingNotifier,
    Notifier,
    SmtpNotifier,
    WebhookNotifier,
    create_notifier,
)

__all__ = [
    "NotificationMessage",
    "build_message",
    "LoggingNotifier",
    "Notifier",
    "SmtpNotifier",
    "WebhookNotifier",
    "create_notifier",
]
