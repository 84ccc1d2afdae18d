"""
Microsoft Teams delivery for critical vendor alerts.

Posts a MessageCard to an incoming-webhook URL.
"""

import httpx
import structlog
from tenacity import RetryError, retry, stop_after_attempt, wait_exponential

from monitoring.models import Alert

logger = structlog.get_logger()


def build_message_card(alert: Alert) -> dict:
    return {
        "@type": "MessageCard",
        "@context": "https://schema.org/extensions",
        "themeColor": "DC2626",
        "summary": f"{alert.severity.value} alert: {alert.vendor}",
        "sections": [
            {
                "activityTitle": f"{alert.severity.value} - {alert.vendor}",
                "activitySubtitle": alert.timestamp.isoformat(),
                "text": alert.message,
            }
        ],
    }


@retry(stop=stop_after_attempt(3), wait=wait_exponential(min=1, max=10))
async def _post_card(webhook_url: str, card: dict) -> None:
    async with httpx.AsyncClient(timeout=10) as client:
        response = await client.post(webhook_url, json=card)
        response.raise_for_status()


async def send_alert_teams(webhook_url: str, alert: Alert) -> bool:
    """Post one alert to a Teams channel. Returns True if delivered."""
    try:
        await _post_card(webhook_url, build_message_card(alert))
        return True
    except (RetryError, httpx.HTTPError) as exc:
        logger.error("alerts.teams_failed", vendor=alert.vendor, alert_id=alert.id, error=str(exc))
        return False
