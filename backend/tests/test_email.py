"""
Tests for notification email content.
"""
import pytest

from jobboard.services.email import EmailService


@pytest.fixture
def sent(monkeypatch):
    service = EmailService()
    outbox = []

    async def capture(to_email, subject, text_content, html_content):
        outbox.append({"to": to_email, "subject": subject, "text": text_content, "html": html_content})
        return True

    monkeypatch.setattr(service, "_send_email", capture)
    return service, outbox


@pytest.mark.asyncio
async def test_new_application_email_escapes_user_values(sent):
    service, outbox = sent

    await service.send_new_application_email(
        "jobs@example.com", "Rust <b>Dev</b>", "<script>alert(1)</script>", "app-1"
    )

    html_body = outbox[0]["html"]
    assert "<script>" not in html_body
    assert "&lt;script&gt;alert(1)&lt;/script&gt;" in html_body
    assert "Rust &lt;b&gt;Dev&lt;/b&gt;" in html_body
    assert "/employer/applications/app-1" in html_body
    assert "<script>alert(1)</script> applied to Rust <b>Dev</b>" in outbox[0]["text"]


@pytest.mark.asyncio
async def test_status_email_escapes_company_name(sent):
    service, outbox = sent

    await service.send_application_status_email("jane@example.com", "Auditor", "A&B <Labs>", "interview")

    assert outbox[0]["subject"] == "You've been invited to interview: Auditor at A&B <Labs>"
    assert "A&amp;B &lt;Labs&gt;" in outbox[0]["html"]
    assert "<strong>interview</strong>" in outbox[0]["html"]
