"""
Email delivery for critical vendor alerts (SendGrid).
"""

import html

import sendgrid
import structlog
from sendgrid.helpers.mail import Mail

from core.config import get_settings
from monitoring.models import Alert, Severity

settings = get_settings()
logger = structlog.get_logger()


def render_alert_html(alert: Alert) -> str:
    accent = "#dc2626" if alert.severity == Severity.CRITICAL else "#f59e0b"
    background = "#fef2f2" if alert.severity == Severity.CRITICAL else "#fff7ed"
    return f"""
    <div style="font-family: Inter, sans-serif; max-width: 600px; margin: 0 auto;">
      <div style="background: #0f172a; color: white; padding: 24px; border-radius: 12px 12px 0 0;">
        <h1 style="margin: 0; font-size: 20px;">{settings.app_name} Vendor Alert</h1>
      </div>
      <div style="background: #f8fafc; padding: 24px; border: 1px solid #e2e8f0;">
        <div style="background: {background}; border-left: 4px solid {accent};
                    padding: 16px; border-radius: 0 8px 8px 0; margin-bottom: 16px;">
          <p style="margin: 0; font-weight: 600; color: #1e293b;">
            {alert.severity.value.upper()} - {html.escape(alert.vendor)}
          </p>
        </div>
        <p style="color: #334155; line-height: 1.6;">{html.escape(alert.message)}</p>
        <p style="color: #64748b;"><strong>Raised:</strong> {alert.timestamp.isoformat()}</p>
      </div>
    </div>
    """


async def send_alert_email(to_email: str, alert: Alert) -> bool:
    """
    Send one alert notification email via SendGrid.

    Only Critical alerts are mailed to avoid alert fatigue.
    Returns True if sent successfully.
    """
    if alert.severity != Severity.CRITICAL:
        return False

    subject = f"{settings.app_name} Critical Alert: {alert.vendor}"
    try:
        sg = sendgrid.SendGridAPIClient(api_key=settings.sendgrid_api_key)
        email = Mail(
            from_email=settings.alert_from_email,
            to_emails=to_email,
            subject=subject,
            html_content=render_alert_html(alert),
        )
        response = sg.send(email)
        return response.status_code in (200, 201, 202)
    except Exception as exc:
        logger.error("alerts.email_failed", vendor=alert.vendor, alert_id=alert.id, error=str(exc))
        return False
