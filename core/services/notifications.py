"""
Outbound email and SMS delivery.

Email goes through Django's mail framework (SMTP in production, the
console backend in development).  SMS is posted to a Semaphore-style
HTTP gateway configured by ``SMS_API_URL`` / ``SMS_API_KEY``.
"""
from __future__ import annotations

import logging

import requests
from django.conf import settings
from django.core.mail import EmailMessage

logger = logging.getLogger(__name__)


class DeliveryError(RuntimeError):
    pass


def send_email(to: str, subject: str, body: str, *, reply_to: str | None = None) -> None:
    headers = {"Reply-To": reply_to} if reply_to else None
    EmailMessage(subject, body, settings.DEFAULT_FROM_EMAIL, [to], headers=headers).send()
    logger.info('email sent to %s: %s', to, subject)


def send_sms(number: str, message: str) -> dict:
    if not settings.SMS_API_KEY:
        raise DeliveryError('SMS gateway not configured')
    r = requests.post(
        settings.SMS_API_URL,
        data={
            'apikey': settings.SMS_API_KEY,
            'number': number,
            'message': message,
            'sendername': settings.SMS_SENDER,
        },
        timeout=settings.SMS_TIMEOUT,
    )
    r.raise_for_status()
    try:
        data = r.json()
    except ValueError:
        data = {}
    logger.info('sms sent to %s', number)
    return data
