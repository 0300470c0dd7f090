#!/usr/bin/env python3
"""
Notification Channels

Delivery channels used when a new service request is broadcast:
- realtime: JSON event published on the recipient's Redis pub/sub channel
- email: SMTP hand-off
- sms: HTTP hand-off to an SMS gateway

Channels never raise into the caller: a failed delivery is logged and
reported as False.

Usage:
    from notification.channels import NotificationChannelFactory

    channel = NotificationChannelFactory.get_channel('sms', gateway_url=..., api_key=...)
    channel.send(recipient, subject, body, metadata)
"""

from abc import ABC, abstractmethod
from typing import Dict, Any, Optional
import logging
import json
import os

import requests
import smtplib
from email.mime.text import MIMEText
from email.mime.multipart import MIMEMultipart

logger = logging.getLogger(__name__)


def _is_dry_run_mode() -> bool:
    """Check if notification channels should run in dry-run (log-only) mode."""
    return os.environ.get('NOTIFICATION_DRY_RUN', '').lower() in ('true', '1', 'yes')


def _mask_email(email: str) -> str:
    """
    Mask email address for safe logging (PII protection).

    Shows only domain, e.g., "***@example.com"
    """
    if '@' not in email:
        return "***"
    local, domain = email.rsplit('@', 1)
    return f"***@{domain}"


def _mask_phone(phone: str) -> str:
    """Keep only the last 4 digits, e.g., "***1234"."""
    digits = ''.join(ch for ch in phone if ch.isdigit())
    if len(digits) <= 4:
        return "***"
    return f"***{digits[-4:]}"


def realtime_channel_name(user_id: Any) -> str:
    return f"user_{user_id}"


class NotificationChannel(ABC):
    """
    Abstract base class for all notification channels.

    All notification channels must implement this interface.
    """

    @property
    @abstractmethod
    def channel_type(self) -> str:
        """Return the channel type identifier."""
        pass

    @abstractmethod
    def send(self, recipient: str, subject: str, body: str, metadata: Dict[str, Any]) -> bool:
        """
        Send a notification through this channel.

        Args:
            recipient: Target recipient (format depends on channel)
            subject: Notification subject/title
            body: Notification body
            metadata: Additional channel-specific metadata

        Returns:
            True if sent successfully, False otherwise
        """
        pass

    def validate_config(self) -> bool:
        """
        Validate that the channel is properly configured.

        Returns:
            True if configured correctly, False otherwise
        """
        return True


class RealtimeChannel(NotificationChannel):
    """
    Real-time events over Redis pub/sub.

    The recipient is a user id; the event is published on ``user_<id>`` as
    ``{"event": <name>, "data": <payload>}``. Best effort: nobody listening
    is not an error.
    """

    def __init__(self, redis_client=None, event_name: str = "new_service_request"):
        self.redis_client = redis_client
        self.event_name = event_name

    @property
    def channel_type(self) -> str:
        return 'realtime'

    def validate_config(self) -> bool:
        return self.redis_client is not None

    def send(self, recipient: str, subject: str, body: str, metadata: Dict[str, Any]) -> bool:
        if not self.validate_config():
            logger.debug("Realtime channel disabled - no Redis connection")
            return False

        channel = realtime_channel_name(recipient)
        message = json.dumps({
            'event': metadata.get('event', self.event_name),
            'data': metadata.get('payload', {'title': subject, 'message': body}),
        }, default=str)

        try:
            listeners = self.redis_client.publish(channel, message)
            logger.info(f"Realtime event published to {channel} ({listeners} listeners)")
            return True
        except Exception as e:
            logger.error(f"Failed to publish realtime event to {channel}: {e}")
            return False


class EmailChannel(NotificationChannel):
    """Email notification channel via SMTP."""

    def __init__(self, from_email: Optional[str] = None, dry_run: bool = False):
        self.from_email = from_email or os.environ.get('FROM_EMAIL', 'noreply@fixia.app')
        self.dry_run = dry_run or _is_dry_run_mode()

    @property
    def channel_type(self) -> str:
        return 'email'

    def validate_config(self) -> bool:
        required_vars = ['SMTP_SERVER', 'SMTP_PORT', 'SMTP_USERNAME', 'SMTP_PASSWORD']
        return all(os.environ.get(var) for var in required_vars)

    def send(self, recipient: str, subject: str, body: str, metadata: Dict[str, Any]) -> bool:
        if not recipient:
            logger.warning("Email skipped - recipient has no address")
            return False

        if self.dry_run:
            logger.info(f"[DRY RUN] Email to {_mask_email(recipient)}: {subject}")
            return True

        if not self.validate_config():
            logger.error("Email not configured - SMTP environment variables not set")
            return False

        try:
            smtp_server = os.environ.get('SMTP_SERVER', 'smtp.gmail.com')
            smtp_port = int(os.environ.get('SMTP_PORT', '587'))
            username = os.environ.get('SMTP_USERNAME', '')
            password = os.environ.get('SMTP_PASSWORD', '')

            msg = MIMEMultipart()
            msg['From'] = self.from_email
            msg['To'] = recipient
            msg['Subject'] = subject
            msg.attach(MIMEText(body, 'plain', 'utf-8'))

            with smtplib.SMTP(smtp_server, smtp_port) as server:
                server.starttls()
                server.login(username, password)
                server.send_message(msg)

            logger.info(f"Email sent to {_mask_email(recipient)}")
            return True

        except Exception as e:
            logger.error(f"Failed to send email to {_mask_email(recipient)}: {e}")
            return False


class SmsChannel(NotificationChannel):
    """SMS hand-off to an HTTP gateway."""

    def __init__(
        self,
        gateway_url: Optional[str] = None,
        api_key: Optional[str] = None,
        sender: str = "Fixia",
        dry_run: bool = False,
        timeout: int = 10
    ):
        self.gateway_url = gateway_url
        self.api_key = api_key
        self.sender = sender
        self.dry_run = dry_run or _is_dry_run_mode()
        self.timeout = timeout

    @property
    def channel_type(self) -> str:
        return 'sms'

    def validate_config(self) -> bool:
        return bool(self.gateway_url)

    def send(self, recipient: str, subject: str, body: str, metadata: Dict[str, Any]) -> bool:
        if not recipient:
            logger.warning("SMS skipped - recipient has no phone number")
            return False

        if self.dry_run:
            logger.info(f"[DRY RUN] SMS to {_mask_phone(recipient)}: {subject}")
            return True

        if not self.validate_config():
            logger.error("SMS gateway not configured")
            return False

        headers = {'Content-Type': 'application/json'}
        if self.api_key:
            headers['Authorization'] = f"Bearer {self.api_key}"

        payload = {
            'to': recipient,
            'from': self.sender,
            'message': f"{subject}: {body}" if subject else body,
        }

        try:
            response = requests.post(
                self.gateway_url,
                json=payload,
                headers=headers,
                timeout=self.timeout
            )
            response.raise_for_status()
            logger.info(f"SMS sent to {_mask_phone(recipient)}")
            return True
        except requests.RequestException as e:
            logger.error(f"Failed to send SMS to {_mask_phone(recipient)}: {e}")
            return False


class NotificationChannelFactory:
    """
    Factory for creating notification channels.

    Channels are built per call with the keyword arguments the caller
    supplies (Redis client, gateway credentials, ...).
    """

    # Registry of available channels
    _channels: Dict[str, type] = {
        'realtime': RealtimeChannel,
        'email': EmailChannel,
        'sms': SmsChannel,
    }

    @classmethod
    def get_channel(cls, channel_type: str, **kwargs) -> NotificationChannel:
        """
        Get a notification channel instance by type.

        Raises:
            ValueError: If channel type is not registered
        """
        channel_class = cls._channels.get(channel_type.lower())
        if not channel_class:
            raise ValueError(f"Unknown channel type: {channel_type}. "
                             f"Available: {', '.join(cls._channels.keys())}")

        return channel_class(**kwargs)
