"""
Tests for the audit trail.
"""

from dataclasses import replace

from otpauth_core.audit import (
    AuditEventType,
    AuditLogger,
    AuditStatus,
    verify_chain_integrity,
)


class TestAuditLogger:

    def test_record_builds_chain(self, clock):
        audit = AuditLogger("test-service", clock=clock)

        first = audit.record(AuditEventType.OTP_SENT, AuditStatus.SUCCESS, {"phone": "+97250123****"})
        clock.advance(1)
        second = audit.record(AuditEventType.OTP_VERIFIED, AuditStatus.SUCCESS)

        assert first.previous_hash is None
        assert second.previous_hash == first.hash
        assert first.event_type == "auth.otp_sent"
        assert second.status == "success"
        assert len(first.hash) == 64

    def test_accepts_plain_strings(self, clock):
        audit = AuditLogger("test-service", clock=clock)

        event = audit.record("custom.event", "pending", {"x": 1})

        assert event.event_type == "custom.event"
        assert event.status == "pending"

    def test_set_previous_hash_continues_chain(self, clock):
        audit = AuditLogger("test-service", clock=clock)
        audit.set_previous_hash("a" * 64)

        event = audit.record(AuditEventType.LOGOUT, AuditStatus.SUCCESS)

        assert event.previous_hash == "a" * 64

    def test_flush_clears_buffer(self, clock):
        audit = AuditLogger("test-service", clock=clock)
        audit.record(AuditEventType.OTP_SENT, AuditStatus.SUCCESS)
        audit.record(AuditEventType.OTP_SEND_FAILED, AuditStatus.ERROR)

        flushed = audit.flush()

        assert [e.event_type for e in flushed] == ["auth.otp_sent", "auth.otp_send_failed"]
        assert audit.events == []

    def test_metadata_is_copied(self, clock):
        audit = AuditLogger("test-service", clock=clock)
        metadata = {"attempts": 1}

        event = audit.record(AuditEventType.OTP_VERIFY_FAILED, AuditStatus.ERROR, metadata)
        metadata["attempts"] = 2

        assert event.metadata == {"attempts": 1}

    def test_to_dict_serializes_timestamp(self, clock):
        event = AuditLogger("svc", clock=clock).record(AuditEventType.OTP_SENT, AuditStatus.SUCCESS)

        assert event.to_dict()["timestamp"] == "2026-01-01T12:00:00+00:00"


class TestChainIntegrity:

    def _events(self, clock, count=3):
        audit = AuditLogger("test-service", clock=clock)
        for i in range(count):
            audit.record(AuditEventType.OTP_VERIFY_FAILED, AuditStatus.ERROR, {"attempts": i + 1})
            clock.advance(1)
        return audit.events

    def test_valid_chain(self, clock):
        assert verify_chain_integrity(self._events(clock)) == (True, None)

    def test_empty_chain_is_valid(self):
        assert verify_chain_integrity([]) == (True, None)

    def test_detects_modified_metadata(self, clock):
        events = self._events(clock)
        events[1] = replace(events[1], metadata={"attempts": 99})

        assert verify_chain_integrity(events) == (False, 1)

    def test_detects_removed_event(self, clock):
        events = self._events(clock)
        del events[1]

        assert verify_chain_integrity(events) == (False, 1)
