import json
from dataclasses import replace

from services.processing import listener
from services.processing.config import load_config
from services.processing.domain.events import ObjectFinalized, parse_finalize_payload


def test_flat_payload_is_parsed():
    events = parse_finalize_payload(
        {
            "bucket": "captures",
            "name": "targets/s1/raw/walkthrough.mov",
            "contentType": "video/quicktime",
        }
    )

    assert events == [
        ObjectFinalized("captures", "targets/s1/raw/walkthrough.mov", "video/quicktime")
    ]


def test_object_key_alias_is_accepted():
    events = parse_finalize_payload({"bucket": "b", "object_key": "k"})

    assert events == [ObjectFinalized("b", "k", "")]


def test_s3_records_are_parsed_and_unquoted():
    payload = {
        "EventName": "s3:ObjectCreated:Put",
        "Records": [
            {
                "s3": {
                    "bucket": {"name": "captures"},
                    "object": {
                        "key": "targets/my+scene/raw/roomplan.zip",
                        "contentType": "application/zip",
                    },
                }
            },
            {"s3": {"bucket": {"name": "captures"}, "object": {}}},
            "junk",
        ],
    }

    assert parse_finalize_payload(payload) == [
        ObjectFinalized("captures", "targets/my scene/raw/roomplan.zip", "application/zip")
    ]


def test_incomplete_payload_is_dropped():
    assert parse_finalize_payload({"bucket": "captures"}) == []
    assert parse_finalize_payload({"name": "targets/x"}) == []


def test_listener_dispatches_valid_messages(monkeypatch):
    messages = [
        {"type": "subscribe", "data": 1},
        {"type": "message", "data": b"not json"},
        {"type": "message", "data": json.dumps(["list"])},
        {
            "type": "message",
            "data": json.dumps({"bucket": "captures", "name": "targets/s/raw/roomplan.zip"}),
        },
    ]
    subscribed = []

    class FakePubSub:
        def subscribe(self, channel):
            subscribed.append(channel)

        def listen(self):
            return iter(messages)

    class FakeRedis:
        def __init__(self, **kwargs):
            pass

        def pubsub(self):
            return FakePubSub()

    monkeypatch.setattr(listener.redis, "Redis", FakeRedis)
    cfg = replace(load_config(), redis_channel="object_finalized")
    dispatched = []

    listener.listen_for_object_finalized(cfg, dispatched.append)

    assert subscribed == ["object_finalized"]
    assert dispatched == [ObjectFinalized("captures", "targets/s/raw/roomplan.zip", "")]
