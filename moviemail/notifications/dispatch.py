from __future__ import annotations

import logging
import random
import smtplib
import time
from collections.abc import Sequence
from dataclasses import dataclass

from moviemail.errors import NotificationDispatchError
from moviemail.models.works import Work
from moviemail.notifications.render import render_message
from moviemail.notifications.smtp import NotificationTransport

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Envelope:
    recipient: str
    sender: str
    subject: str


@dataclass(frozen=True)
class DispatchResult:
    announced: int
    sent: bool
    attempts: int = 0


def is_transient_smtp_error(exc: BaseException) -> bool:
    if isinstance(exc, (smtplib.SMTPServerDisconnected, smtplib.SMTPConnectError)):
        return True
    if isinstance(exc, smtplib.SMTPResponseException):
        return 400 <= exc.smtp_code < 500
    if isinstance(exc, smtplib.SMTPException):
        return False
    return isinstance(exc, OSError)


def print_works(works: Sequence[Work]) -> None:
    for work in works:
        print(f"{work.title} - {work.director_name} - {work.release_date} - {work.link}")


def dispatch_notification(
    works: Sequence[Work],
    *,
    envelope: Envelope | None,
    transport: NotificationTransport | None,
    dry_run: bool = False,
    max_attempts: int = 3,
    backoff_seconds: float = 2.0,
) -> DispatchResult:
    """
    Announce `works`.

    Nothing happens for an empty list. In dry-run mode each work is printed to
    stdout; otherwise the rendered message goes to `transport`, retrying
    transient SMTP failures with exponential backoff.
    """

    message = render_message(works)
    if message is None:
        logger.info("No new works to announce.")
        return DispatchResult(announced=0, sent=False)

    if dry_run:
        print_works(works)
        return DispatchResult(announced=len(works), sent=False)

    if envelope is None or transport is None:
        raise NotificationDispatchError("Email delivery requires an envelope and a transport.")

    max_attempts = max(1, int(max_attempts))
    for attempt in range(max_attempts):
        try:
            transport.send(
                recipient=envelope.recipient,
                sender=envelope.sender,
                subject=envelope.subject,
                plain_body=message.plain,
                html_body=message.html,
            )
        except (smtplib.SMTPException, OSError) as exc:
            if is_transient_smtp_error(exc) and attempt < max_attempts - 1:
                delay = backoff_seconds * (2**attempt)
                jitter = random.uniform(0.0, delay * 0.25)
                logger.warning(f"Email send failed ({exc}); retrying in {delay + jitter:.2f}s")
                time.sleep(delay + jitter)
                continue
            raise NotificationDispatchError(
                f"Sending notification to {envelope.recipient} failed after {attempt + 1} attempt(s): {exc}"
            ) from exc
        logger.info(f"Announced {len(works)} works to {envelope.recipient}.")
        return DispatchResult(announced=len(works), sent=True, attempts=attempt + 1)

    raise NotificationDispatchError(f"Sending notification to {envelope.recipient} failed.")
