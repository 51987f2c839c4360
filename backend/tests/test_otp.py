"""OTP issue / verify / cleanup, over HTTP and against the service directly."""

from __future__ import annotations

from datetime import timedelta

from sqlmodel import select

from roombook.api.v1 import otp as otp_routes
from roombook.models import OtpRecord
from roombook.services.otp import INVALID_OR_EXPIRED, OtpService


def _stored(session, email="a@b.com") -> OtpRecord:
    session.expire_all()
    return session.exec(select(OtpRecord).where(OtpRecord.email == email)).one()


def test_send_stores_six_digit_code_with_five_minute_expiry(client, session, clock, mailer):
    response = client.post("/api/otp/send", json={"email": "a@b.com"})

    assert response.status_code == 200, response.json()
    record = _stored(session)
    assert len(record.otp) == 6 and record.otp.isdigit()
    assert record.expires_at == clock.now + timedelta(minutes=5)
    assert record.is_verified is False
    assert mailer.sent[-1]["to"] == "a@b.com"
    assert record.otp in mailer.sent[-1]["subject"]
    assert response.json()["expires_at"] == record.expires_at.isoformat()


def test_verify_then_expired(client, session, clock):
    client.post("/api/otp/send", json={"email": "a@b.com"})
    code = _stored(session).otp

    verified = client.post("/api/otp/verify", json={"email": "a@b.com", "otp": code})
    assert verified.status_code == 200
    assert verified.json()["verified"] is True

    clock.advance(minutes=5, seconds=1)
    again = client.post("/api/otp/verify", json={"email": "a@b.com", "otp": code})
    assert again.status_code == 400
    assert again.json()["message"] == INVALID_OR_EXPIRED


def test_wrong_code_rejected(client, session):
    client.post("/api/otp/send", json={"email": "a@b.com"})
    wrong = "000000" if _stored(session).otp != "000000" else "111111"

    response = client.post("/api/otp/verify", json={"email": "a@b.com", "otp": wrong})

    assert response.status_code == 400
    assert response.json()["message"] == INVALID_OR_EXPIRED
    assert _stored(session).is_verified is False


def test_malformed_code_rejected_before_lookup(client):
    response = client.post("/api/otp/verify", json={"email": "a@b.com", "otp": "12ab"})
    assert response.status_code == 400
    assert response.json()["message"] == "OTP must contain digits only."

    short = client.post("/api/otp/verify", json={"email": "a@b.com", "otp": "1234"})
    assert short.status_code == 400
    assert short.json()["message"] == "OTP must be exactly 6 digits."


def test_code_length_follows_configured_settings(client, session, settings):
    settings.OTP_LENGTH = 8
    client.post("/api/otp/send", json={"email": "a@b.com"})
    code = _stored(session).otp
    assert len(code) == 8

    response = client.post("/api/otp/verify", json={"email": "a@b.com", "otp": code})

    assert response.status_code == 200, response.json()
    assert response.json()["verified"] is True
    rejected = client.post("/api/otp/verify", json={"email": "a@b.com", "otp": code[:6]})
    assert rejected.json()["message"] == "OTP must be exactly 8 digits."


def test_resend_replaces_code_and_resets_verification(client, session, clock):
    client.post("/api/otp/send", json={"email": "a@b.com"})
    client.post("/api/otp/verify", json={"email": "a@b.com", "otp": _stored(session).otp})
    assert _stored(session).is_verified is True

    clock.advance(minutes=1)
    client.post("/api/otp/send", json={"email": "A@B.com"})

    records = session.exec(select(OtpRecord)).all()
    assert len(records) == 1
    assert records[0].is_verified is False
    assert records[0].expires_at == clock.now + timedelta(minutes=5)


def test_status_reports_verification(client, session):
    assert client.get("/api/otp/status/a@b.com").json()["is_verified"] is False

    client.post("/api/otp/send", json={"email": "a@b.com"})
    client.post("/api/otp/verify", json={"email": "a@b.com", "otp": _stored(session).otp})

    status = client.get("/api/otp/status/a@b.com").json()
    assert status["is_verified"] is True
    assert status["verified_at"] is not None


def test_status_rejects_bad_email(client):
    response = client.get("/api/otp/status/not-an-email")
    assert response.status_code == 400
    assert response.json()["message"] == "Invalid email format"


def test_send_reports_email_failure_but_keeps_code(client, session, mailer):
    mailer.fail_with = "Email service is not configured."

    response = client.post("/api/otp/send", json={"email": "a@b.com"})

    assert response.status_code == 502
    body = response.json()
    assert body["category"] == "notification"
    assert body["message"] == "OTP generated but the email could not be sent."
    assert body["error"] == "Email service is not configured."
    assert _stored(session).otp


def test_send_is_rate_limited(client):
    for _ in range(5):
        assert client.post("/api/otp/send", json={"email": "a@b.com"}).status_code == 200

    response = client.post("/api/otp/send", json={"email": "a@b.com"})

    assert response.status_code == 429
    assert response.json()["category"] == "rate_limited"


def test_send_rate_limit_read_from_settings(client, settings, monkeypatch):
    settings.OTP_SEND_RATE_LIMIT = "2/minute"
    monkeypatch.setattr(otp_routes, "get_settings", lambda: settings)

    statuses = [client.post("/api/otp/send", json={"email": "a@b.com"}).status_code for _ in range(3)]

    assert statuses == [200, 200, 429]


def test_cleanup_endpoint(client, session, clock):
    client.post("/api/otp/send", json={"email": "a@b.com"})
    clock.advance(minutes=10)

    first = client.post("/api/otp/cleanup-expired").json()
    second = client.post("/api/otp/cleanup-expired").json()

    assert first["deleted_count"] == 1
    assert first["message"] == "Cleaned up 1 expired OTP records."
    assert second["deleted_count"] == 0


def test_cleanup_removes_only_expired(session, settings, mailer, clock):
    now = clock.now
    session.add_all(
        [
            OtpRecord(email="old@example.com", otp="111111", expires_at=now - timedelta(seconds=1), created_at=now),
            OtpRecord(email="edge@example.com", otp="222222", expires_at=now, created_at=now),
            OtpRecord(email="fresh@example.com", otp="333333", expires_at=now + timedelta(minutes=4), created_at=now),
        ]
    )
    session.commit()
    service = OtpService(session, settings, mailer, clock)

    assert service.cleanup() == 1
    assert service.cleanup() == 0
    remaining = {r.email for r in session.exec(select(OtpRecord)).all()}
    assert remaining == {"edge@example.com", "fresh@example.com"}


def test_generate_code_respects_length(session, settings, mailer, clock):
    settings.OTP_LENGTH = 8
    service = OtpService(session, settings, mailer, clock)
    codes = {service.generate_code() for _ in range(50)}
    assert all(len(code) == 8 and code.isdigit() for code in codes)
