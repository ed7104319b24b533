"""
Email templates for Nudge.

Inline CSS only. Each template function returns (subject, html_body, text_body).
"""

from __future__ import annotations

from datetime import time
from html import escape

from nudge.schedule.time_buckets import format_time

APP_NAME = "Nudge"
TEXT_MUTED = "#666666"
CARD_BG = "#F5F5F5"


def _base_layout(content: str) -> str:
    return f"""\
<!DOCTYPE html>
<html lang="en">
<head>
    <meta charset="UTF-8">
    <meta name="viewport" content="width=device-width, initial-scale=1.0">
    <title>{APP_NAME}</title>
</head>
<body style="margin: 0; padding: 0;">
    <div style="font-family: system-ui, -apple-system, sans-serif; max-width: 600px; margin: 0 auto; padding: 20px;">
        {content}
    </div>
</body>
</html>"""


def pinky_promise_reminder(class_name: str | None, start_time: time, duration_minutes: int) -> tuple[str, str, str]:
    """Reminder sent about an hour before a promised study block."""
    subject = "🤙 Pinky Promise Reminder - Study Time Soon!"
    name = class_name or "Your study session"
    when = format_time(start_time)

    content = f"""\
<h1 style="font-size: 24px; margin-bottom: 20px;">🤙 Hey! You made a pinky promise!</h1>
<div style="background: {CARD_BG}; padding: 20px; border-radius: 10px; margin: 20px 0;">
    <h2 style="margin: 0 0 10px 0; font-size: 18px;">{escape(name)}</h2>
    <p style="margin: 5px 0; color: {TEXT_MUTED};"><strong>Time:</strong> {when} (in about 1 hour)</p>
    <p style="margin: 5px 0; color: {TEXT_MUTED};"><strong>Duration:</strong> {duration_minutes} minutes</p>
</div>
<p style="font-size: 16px; line-height: 1.6;">
    You promised to show up for this study session. Don't break your pinky promise! 💪
</p>
<p style="font-size: 14px; color: {TEXT_MUTED}; margin-top: 30px;">
    Remember: Keeping your promises builds trust with yourself and makes you stronger.
</p>"""

    text = (
        "Hey! You made a pinky promise!\n\n"
        f"{name}\n"
        f"Time: {when} (in about 1 hour)\n"
        f"Duration: {duration_minutes} minutes\n\n"
        "You promised to show up for this study session. Don't break your pinky promise!\n"
    )
    return subject, _base_layout(content), text
