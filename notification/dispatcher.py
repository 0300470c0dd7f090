#!/usr/bin/env python3
"""
Notification Dispatcher - fans a new service request out to matched candidates.

For each candidate, in priority order:
1. Real-time event on ``user_<id>`` (when push for new requests is on)
2. Email hand-off (when email for new requests is on)
3. SMS hand-off (emergency requests, when SMS for urgent requests is on)
4. Deduplicated in-app notification record

Channel sends are best effort and independent of the record outcome. A
candidate that fails is skipped and the rest of the list still runs.
"""

from typing import List, Optional, Dict
from dataclasses import dataclass, field
import logging

from database.models import ServiceRequest, Urgency
from core.config_loader import NotificationConfig
from core.matcher.models import MatchCandidate
from notification.channels import NotificationChannel, NotificationChannelFactory
from notification.message_builder import NotificationMessageBuilder, ServiceRequestPayload
from notification.service import NotificationService

logger = logging.getLogger(__name__)


@dataclass
class DispatchReport:
    """Per-run dispatch counters."""
    request_id: Optional[int] = None
    processed: int = 0
    persisted: int = 0
    suppressed: int = 0
    skipped: int = 0
    channel_sends: Dict[str, int] = field(default_factory=dict)
    channel_failures: Dict[str, int] = field(default_factory=dict)

    def record_send(self, channel_type: str, success: bool) -> None:
        counters = self.channel_sends if success else self.channel_failures
        counters[channel_type] = counters.get(channel_type, 0) + 1


def build_channels(config: NotificationConfig, redis_client=None) -> Dict[str, NotificationChannel]:
    """Instantiate the delivery channels enabled in config."""
    channels: Dict[str, NotificationChannel] = {}

    if config.realtime_enabled and redis_client is not None:
        channels['realtime'] = NotificationChannelFactory.get_channel(
            'realtime', redis_client=redis_client, event_name=config.realtime_event_name
        )
    if config.email_enabled:
        channels['email'] = NotificationChannelFactory.get_channel(
            'email', from_email=config.from_email, dry_run=config.dry_run
        )
    if config.sms_enabled:
        gateway = config.sms_gateway
        channels['sms'] = NotificationChannelFactory.get_channel(
            'sms',
            gateway_url=gateway.url,
            api_key=gateway.api_key,
            sender=gateway.sender,
            dry_run=config.dry_run
        )

    logger.info(f"Notification channels enabled: {', '.join(channels) or 'none'}")
    return channels


class NotificationDispatcher:
    """
    Delivers a request to an ordered candidate list across channels.
    """

    def __init__(
        self,
        notification_service: NotificationService,
        channels: Optional[Dict[str, NotificationChannel]] = None,
        config: Optional[NotificationConfig] = None
    ):
        self.notification_service = notification_service
        self.channels = channels or {}
        self.config = config or NotificationConfig()

    def dispatch(self, candidates: List[MatchCandidate], request: ServiceRequest) -> int:
        """
        Notify every candidate about ``request``.

        Returns:
            Number of candidates processed; suppressed duplicates still count
        """
        return self.dispatch_with_report(candidates, request).processed

    def dispatch_with_report(self, candidates: List[MatchCandidate], request: ServiceRequest) -> DispatchReport:
        report = DispatchReport(request_id=request.id)

        payload = NotificationMessageBuilder.build_request_payload(request, self.config.currency)
        template = NotificationMessageBuilder.build_request_notification(request)
        data = NotificationMessageBuilder.build_request_data(request)

        for candidate in candidates:
            try:
                self._deliver(candidate, request, payload, report)

                record = self.notification_service.create_notification(
                    user_id=candidate.professional_id,
                    title=template.title,
                    message=template.message,
                    notification_type=template.type,
                    related_id=request.id,
                    data=data,
                )
            except Exception as e:
                logger.error(
                    f"Failed to notify professional {candidate.professional_id} "
                    f"about request {request.id}: {e}"
                )
                report.skipped += 1
                continue

            report.processed += 1
            if record is not None:
                report.persisted += 1
            else:
                report.suppressed += 1

        logger.info(
            f"Request {request.id}: processed {report.processed}, persisted {report.persisted}, "
            f"suppressed {report.suppressed}, skipped {report.skipped}"
        )
        return report

    def _deliver(
        self,
        candidate: MatchCandidate,
        request: ServiceRequest,
        payload: ServiceRequestPayload,
        report: DispatchReport
    ) -> None:
        settings = candidate.settings

        if settings.push_new_requests:
            self._send(
                'realtime', str(candidate.professional_id), payload.title, payload.description or "",
                {'event': self.config.realtime_event_name, 'payload': payload.to_event()},
                report
            )

        if settings.email_new_requests:
            self._send(
                'email', candidate.email, f"New service request: {payload.title}",
                NotificationMessageBuilder.build_email_body(payload),
                {'request_id': request.id},
                report
            )

        if request.urgency == Urgency.EMERGENCY.value and settings.sms_urgent_requests:
            self._send(
                'sms', candidate.phone, "", NotificationMessageBuilder.build_sms_text(payload),
                {'request_id': request.id},
                report
            )

    def _send(self, channel_type: str, recipient: Optional[str], subject: str, body: str, metadata, report) -> None:
        channel = self.channels.get(channel_type)
        if channel is None:
            return
        success = channel.send(recipient, subject, body, metadata)
        report.record_send(channel_type, success)
