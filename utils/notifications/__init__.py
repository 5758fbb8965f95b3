"""
Process-wide notification side channels: a toast queue and a confirmation gate.
"""

from utils.notifications.toast import ToastEntry, ToastQueue, toast_queue
from utils.notifications.confirm import ConfirmationGate, PendingConfirmation, confirmation_gate

__all__ = [
    "ToastEntry",
    "ToastQueue",
    "toast_queue",
    "ConfirmationGate",
    "PendingConfirmation",
    "confirmation_gate",
]
