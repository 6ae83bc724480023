"""Outbound alert delivery to a Slack-compatible incoming webhook."""

from __future__ import annotations

from roomclimate.common.http import HttpClient, TimeoutConfig

DEFAULT_USERNAME = "room-climate"
DEFAULT_ICON_EMOJI = ":thermometer:"


class WebhookAlertSink:
    def __init__(
        self,
        client: HttpClient,
        url: str,
        *,
        username: str = DEFAULT_USERNAME,
        icon_emoji: str = DEFAULT_ICON_EMOJI,
    ) -> None:
        self.client = client
        self.url = url
        self.username = username
        self.icon_emoji = icon_emoji

    def send(self, text: str) -> None:
        self.client.post_json(
            self.url,
            source_type="webhook",
            payload={
                "text": text,
                "username": self.username,
                "icon_emoji": self.icon_emoji,
            },
            timeout=TimeoutConfig(connect=10, read=20),
        )
