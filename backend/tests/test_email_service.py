"""
Verification email: link logging and HTML escaping.
"""

import logging
from email import message_from_string
from unittest.mock import MagicMock, patch

import pytest

from portray.services import email_service


@pytest.fixture
def mail_server(app, monkeypatch):
    monkeypatch.setitem(app.config, "MAIL_SERVER", "smtp.portray.test")
    monkeypatch.setitem(app.config, "MAIL_USE_TLS", False)
    server = MagicMock()
    with patch("smtplib.SMTP") as mock_smtp:
        mock_smtp.return_value.__enter__.return_value = server
        yield server


def _html_part(server):
    raw = server.sendmail.call_args[0][2]
    (html,) = [
        part.get_payload(decode=True).decode()
        for part in message_from_string(raw).walk()
        if part.get_content_type() == "text/html"
    ]
    return html


class TestVerificationEmail:
    def test_link_not_logged_when_delivered(self, mail_server, caplog):
        with caplog.at_level(logging.INFO):
            assert email_service.send_verification_email("asha@kochiport.test", "Asha", "secret-token") is True

        mail_server.sendmail.assert_called_once()
        assert "secret-token" not in caplog.text

    def test_link_logged_without_mail_server(self, app, caplog):
        with caplog.at_level(logging.INFO):
            assert email_service.send_verification_email("asha@kochiport.test", "Asha", "dev-token") is False

        assert "dev-token" in caplog.text

    def test_contact_name_is_escaped_in_html(self, mail_server):
        email_service.send_verification_email("eve@kochiport.test", "<script>alert(1)</script>", "tok")

        html = _html_part(mail_server)
        assert "<script>" not in html
        assert "&lt;script&gt;" in html
