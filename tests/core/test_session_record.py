"""Tests for session domain objects."""

from datetime import datetime, timedelta, timezone

import pytest

from mentor_session.core.entities import SessionRecord
from mentor_session.core.value_objects import DeviceInfo, SessionKey, TokenPair

NOW = datetime(2026, 3, 2, 9, 0, tzinfo=timezone.utc)


class TestSessionRecord:
    """Test the liveness rule and document mapping."""

    def test_from_document(self):
        record = SessionRecord.from_document("user-1_device-a", {
            "userId": "user-1",
            "deviceInfo": {
                "deviceId": "device-a",
                "platform": "android",
                "osVersion": 14,
                "appVersion": "2.4.0",
            },
            "createdAt": "2026-03-01T09:00:00Z",
            "lastActivity": NOW,
            "isActive": True,
            "tokenHashes": {"access": "abc", "refresh": "def"},
        })

        assert record.device_id == "device-a"
        assert record.device_info.os_version == "14"
        assert record.created_at == NOW - timedelta(days=1)
        assert record.token_hashes["refresh"] == "def"
        assert record.is_live(timedelta(days=30), NOW)

    def test_naive_timestamps_are_utc(self):
        record = SessionRecord("s", "user-1", last_activity=datetime(2026, 3, 2, 9, 0))
        assert record.last_activity == NOW

    @pytest.mark.parametrize("idle,active,live", [
        (timedelta(days=29), True, True),
        (timedelta(days=30), True, True),
        (timedelta(days=30, seconds=1), True, False),
        (timedelta(minutes=1), False, False),
    ])
    def test_liveness(self, idle, active, live):
        record = SessionRecord("s", "user-1", last_activity=NOW - idle, is_active=active)
        assert record.is_live(timedelta(days=30), NOW) is live

    def test_missing_is_active_reads_as_inactive(self):
        record = SessionRecord.from_document("s", {"userId": "user-1"})
        assert record.is_active is False
        assert record.device_info is None


class TestValueObjects:

    def test_session_key_doc_id(self):
        assert SessionKey("user-1", "device-a").doc_id == "user-1_device-a"

    def test_session_key_requires_both_parts(self):
        with pytest.raises(ValueError):
            SessionKey("user-1", "")

    def test_device_info_document_round_trip(self):
        info = DeviceInfo("device-a", "ios", "17.4", "2.4.0", brand="Apple")
        assert DeviceInfo.from_document(info.to_document()) == info

    def test_token_pair_repr_hides_tokens(self):
        pair = TokenPair("secret-access", "secret-refresh")
        assert "secret" not in repr(pair)
