from __future__ import annotations

from datetime import datetime, timedelta, timezone

from roomclimate.pipeline.alerts import WebhookAlertSink
from roomclimate.pipeline.freshness import evaluate_freshness, format_stale_message

JST = timezone(timedelta(hours=9))
NOW = datetime(2026, 10, 18, 12, 0, tzinfo=JST)


def test_evaluate_freshness_flags_old_and_empty_sources():
    stale = evaluate_freshness(
        {
            "fresh": NOW - timedelta(minutes=30),
            "edge": NOW - timedelta(hours=3),
            "old": NOW - timedelta(hours=5, minutes=10),
            "empty": None,
        },
        now=NOW,
        stale_after=timedelta(hours=3),
    )

    assert [item.name for item in stale] == ["old", "empty"]
    assert stale[0].age == timedelta(hours=5, minutes=10)


def test_format_stale_message_lists_each_source():
    stale = evaluate_freshness(
        {"living": NOW - timedelta(hours=5, minutes=10), "bedroom": None},
        now=NOW,
        stale_after=timedelta(hours=3),
    )

    message = format_stale_message(stale, NOW)

    assert "living: last reading 2026-10-18T06:50+09:00 (5h10m ago)" in message
    assert "bedroom: no readings found" in message


def test_webhook_sink_posts_text_with_display_name_and_icon():
    class FakeHttpClient:
        def __init__(self):
            self.calls = []

        def post_json(self, url, **kwargs):
            self.calls.append((url, kwargs))
            return 200

    client = FakeHttpClient()
    WebhookAlertSink(client, "https://hooks.example/T/B/X", username="sensor-bot", icon_emoji=":fire:").send("stale")

    url, kwargs = client.calls[0]
    assert url == "https://hooks.example/T/B/X"
    assert kwargs["payload"] == {"text": "stale", "username": "sensor-bot", "icon_emoji": ":fire:"}
    assert kwargs["source_type"] == "webhook"
