import html
from typing import Any, Dict, Optional
from urllib.parse import quote

EMAIL_TEMPLATE = """<!DOCTYPE html>
<html>
<head>
    <meta charset="utf-8">
    <style>
        body {{ font-family: -apple-system, BlinkMacSystemFont, 'Segoe UI', Roboto, sans-serif; }}
        .container {{ max-width: 600px; margin: 0 auto; padding: 20px; }}
        .header {{ background: #16a34a; color: white; padding: 20px; border-radius: 8px 8px 0 0; }}
        .content {{ background: #f9fafb; padding: 20px; border-radius: 0 0 8px 8px; }}
        .button {{ display: inline-block; background: #16a34a; color: white; padding: 12px 24px;
                  border-radius: 6px; text-decoration: none; margin-top: 16px; }}
        .footer {{ color: #6b7280; font-size: 12px; margin-top: 20px; }}
    </style>
</head>
<body>
    <div class="container">
        <div class="header">
            <h1 style="margin: 0;">&#127951; CricApp</h1>
        </div>
        <div class="content">
            <h2>{title}</h2>
            <p>{body}</p>
            <a href="{match_url}" class="button">View Match</a>
        </div>
        <div class="footer">
            <p>You're receiving this because you have notifications enabled for this team.</p>
            <p><a href="{preferences_url}">Manage notification preferences</a></p>
        </div>
    </div>
</body>
</html>
"""


class NotificationMessageBuilder:
    """Renders notification rows into channel payloads. All user-facing text is escaped."""

    def __init__(self, base_url: str = "http://localhost:3000"):
        self.base_url = (base_url or "").rstrip('/')

    def match_url(self, match_id: Optional[Any]) -> str:
        if match_id:
            return f"{self.base_url}/matches/{quote(str(match_id), safe='')}"
        return f"{self.base_url}/dashboard"

    def preferences_url(self) -> str:
        return f"{self.base_url}/settings/notifications"

    def build_email_html(self, title: str, body: str, metadata: Optional[Dict[str, Any]] = None) -> str:
        metadata = metadata or {}
        return EMAIL_TEMPLATE.format(
            title=html.escape(title or ''),
            body=html.escape(body or ''),
            match_url=html.escape(self.match_url(metadata.get('matchId')), quote=True),
            preferences_url=html.escape(self.preferences_url(), quote=True),
        )
