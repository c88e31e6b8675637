"""
HTML bodies for alert and verification emails.

All user-supplied text (alert and report messages, geocoded address) is
HTML-escaped before it is embedded.
"""

import html
import logging
from datetime import datetime
from functools import lru_cache
from typing import Optional

import pytz
from timezonefinder import TimezoneFinder

from app.core.config import settings
from app.models.alert import Alert
from app.models.report import Report

logger = logging.getLogger(__name__)

EMERGENCY_SUBJECT = "EMERGENCY: Report in your area!"
STANDARD_SUBJECT = "Alert: New report in your area"
VERIFICATION_SUBJECT = "Verify your email for alerts"


def alert_subject(is_emergency: bool) -> str:
    return EMERGENCY_SUBJECT if is_emergency else STANDARD_SUBJECT


def heat_map_url(report: Report, base_url: Optional[str] = None) -> str:
    return f"{base_url or settings.BASE_URL}/?reportId={report.external_id}"


def map_thumbnail_url(report: Report, base_url: Optional[str] = None) -> str:
    return f"{base_url or settings.BASE_URL}{settings.API_V1_STR}/map/proxy?report_id={report.external_id}"


def verification_link(token: str, base_url: Optional[str] = None) -> str:
    return f"{base_url or settings.BASE_URL}/verify-email?token={token}"


@lru_cache(maxsize=1)
def _timezone_finder() -> TimezoneFinder:
    return TimezoneFinder()


def location_timezone(latitude: float, longitude: float) -> Optional[str]:
    """IANA timezone containing the coordinate, or None (e.g. open ocean)."""
    try:
        return _timezone_finder().timezone_at(lng=longitude, lat=latitude)
    except ValueError as e:
        logger.warning(f"Timezone lookup failed for ({latitude}, {longitude}): {e}")
        return None


def format_local_time(timestamp: datetime, timezone_name: Optional[str] = None) -> str:
    """
    Render a naive-UTC timestamp in timezone_name (DISPLAY_TIMEZONE when None).

    Falls back to UTC if the timezone name is unknown.
    """
    timezone_name = timezone_name or settings.DISPLAY_TIMEZONE
    utc_time = pytz.utc.localize(timestamp) if timestamp.tzinfo is None else timestamp

    try:
        tz = pytz.timezone(timezone_name)
    except pytz.UnknownTimeZoneError:
        logger.warning(f"Unknown display timezone {timezone_name!r}, using UTC")
        return f"{utc_time:%m/%d/%Y %I:%M %p} UTC"

    local_time = utc_time.astimezone(tz)
    return f"{local_time:%m/%d/%Y %I:%M %p} ({timezone_name})"


def render_alert_email(
    report: Report,
    alert: Alert,
    address: Optional[str] = None,
    show_map: bool = False,
    base_url: Optional[str] = None,
    timezone_name: Optional[str] = None
) -> str:
    """
    Build the notification body for one alert subscriber.

    Args:
        report: The report that matched
        alert: The subscriber's alert
        address: Approximate street address, if reverse geocoding succeeded
        show_map: Embed the map thumbnail (only when a map provider token is set)
        base_url: Public site URL for links
        timezone_name: IANA timezone for the report time (defaults to the zone
            containing the report location)

    Returns:
        str: HTML email content
    """
    map_link = heat_map_url(report, base_url)

    parts = ["<h3>New report near your alert area</h3>"]
    if alert.message:
        parts.append(f"<p><strong>Your Alert:</strong> {html.escape(alert.message)}</p>")
    if address:
        parts.append(f"<p><strong>Approx. Address:</strong> {html.escape(address)}</p>")
    parts.append(f"<p><strong>Location:</strong> {report.location_display(4)}</p>")
    timezone_name = timezone_name or location_timezone(report.latitude, report.longitude)
    parts.append(f"<p><strong>Time:</strong> {format_local_time(report.created_at, timezone_name)}</p>")
    if report.is_emergency:
        parts.append("<p style='color: red; font-weight: bold;'>THIS IS MARKED AS AN EMERGENCY</p>")
    if report.message:
        parts.append(f"<p><strong>Message:</strong> {html.escape(report.message)}</p>")
    if show_map:
        parts.append(
            f"<p><a href='{map_link}'><img src='{map_thumbnail_url(report, base_url)}' alt='Map Location' "
            f"style='max-width: 100%; height: auto; border-radius: 8px;' /></a></p>"
        )
    parts.append("<hr/>")
    parts.append(f"<p><a href='{map_link}'>View on Heat Map</a></p>")
    parts.append("<small>You received this because you set up an alert on AreTheyHere.</small>")

    return "\n".join(parts)


def render_verification_email(token: str, base_url: Optional[str] = None) -> str:
    link = verification_link(token, base_url)
    return f"""
<!DOCTYPE html>
<html>
<head>
    <meta charset="UTF-8">
    <title>Verify your email</title>
</head>
<body style="margin: 0; padding: 0; font-family: Arial, sans-serif; background-color: #f4f4f4;">
    <div style="max-width: 600px; margin: 40px auto; background-color: #ffffff; border-radius: 8px; padding: 40px;">
        <h1 style="margin: 0 0 20px 0; color: #333333; font-size: 24px;">Confirm your alert email</h1>
        <p style="color: #666666; font-size: 16px; line-height: 1.5;">
            Someone (hopefully you) set up an alert with this address. Click the button below to start
            receiving notifications. One confirmation covers every alert registered to this email.
        </p>
        <p style="text-align: center; margin: 30px 0;">
            <a href="{link}" style="background-color: #4F46E5; color: #ffffff; padding: 12px 24px; border-radius: 6px; text-decoration: none;">
                Verify Email
            </a>
        </p>
        <p style="color: #999999; font-size: 14px;">If you did not create an alert, you can ignore this email.</p>
    </div>
</body>
</html>
"""
