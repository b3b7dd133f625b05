"""
Rendering and delivery of the "new movies" message.
"""

from moviemail.notifications.dispatch import DispatchResult, Envelope, dispatch_notification
from moviemail.notifications.render import RenderedMessage, render_message
from moviemail.notifications.smtp import NotificationTransport, SmtpTransport

__all__ = [
    "DispatchResult",
    "Envelope",
    "NotificationTransport",
    "RenderedMessage",
    "SmtpTransport",
    "dispatch_notification",
    "render_message",
]
