"""
Critical alert dispatch — hands the Critical subset of a recompute to the
configured sink (email or Teams).

Nothing is sent unless notifications are enabled, recipients are set, and
at least one Critical alert exists.
"""

from collections.abc import Sequence

import structlog

from alerts.email import send_alert_email
from alerts.teams import send_alert_teams
from monitoring.models import Alert, NotificationChannel, NotificationSettings, Severity

logger = structlog.get_logger()


def parse_recipients(raw: str) -> list[str]:
    """Split a comma/semicolon separated recipient string."""
    normalized = raw.replace(";", ",")
    return [r.strip() for r in normalized.split(",") if r.strip()]


async def dispatch_critical_alerts(alerts: Sequence[Alert], notifications: NotificationSettings) -> int:
    """Deliver Critical alerts to every recipient. Returns deliveries that succeeded."""
    if not notifications.enabled:
        return 0
    recipients = parse_recipients(notifications.recipients)
    if not recipients:
        return 0
    critical = [a for a in alerts if a.severity == Severity.CRITICAL]
    if not critical:
        return 0

    delivered = 0
    attempted = 0
    for recipient in recipients:
        for alert in critical:
            attempted += 1
            if notifications.channel == NotificationChannel.TEAMS:
                ok = await send_alert_teams(recipient, alert)
            else:
                ok = await send_alert_email(recipient, alert)
            delivered += int(ok)

    logger.info(
        "alerts.dispatched",
        channel=notifications.channel.value,
        critical=len(critical),
        attempted=attempted,
        delivered=delivered,
    )
    return delivered
