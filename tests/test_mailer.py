"""Tests for the Resend mailer (HTTP session mocked)."""

from unittest import mock

import pytest
import requests

from pegslam.config import Settings
from pegslam.exceptions import EmailDeliveryError
from pegslam.mailer import RESEND_API_URL, Mailer


@pytest.fixture
def session():
    s = mock.Mock()
    s.post.return_value = mock.Mock(status_code=200, text="{}")
    return s


@pytest.fixture
def mailer(session, monkeypatch):
    monkeypatch.setenv("RESEND_API_KEY", "re_test")
    settings = Settings()
    settings.app_url = "https://pegslam.test"
    return Mailer(settings, session=session)


class TestMailer:
    def test_without_key_skips_send(self, session, monkeypatch):
        monkeypatch.delenv("RESEND_API_KEY", raising=False)
        mailer = Mailer(Settings(), session=session)

        assert mailer.send_verification("jane@example.com", "abc") is False
        session.post.assert_not_called()

    def test_password_reset_link(self, mailer, session):
        assert mailer.send_password_reset("jane@example.com", "tok123", "Jane") is True

        args, kwargs = session.post.call_args
        assert args == (RESEND_API_URL,)
        assert kwargs["headers"]["Authorization"] == "Bearer re_test"
        assert kwargs["json"]["to"] == ["jane@example.com"]
        assert "https://pegslam.test/reset-password?token=tok123" in kwargs["json"]["html"]

    def test_contact_goes_to_inbox_with_reply_to(self, mailer, session):
        form = {
            "firstName": "Jane",
            "lastName": "Carp",
            "email": "jane@example.com",
            "mobileNumber": "07700 900000",
            "comment": "<b>When</b> is the next match?",
        }

        mailer.send_contact(form)

        body = session.post.call_args.kwargs["json"]
        assert body["to"] == [mailer.settings.contact_email]
        assert body["reply_to"] == "jane@example.com"
        assert "&lt;b&gt;When&lt;/b&gt;" in body["html"]

    def test_rejected_send_raises(self, mailer, session):
        session.post.return_value = mock.Mock(status_code=422, text="invalid from")

        with pytest.raises(EmailDeliveryError) as excinfo:
            mailer.send_verification("jane@example.com", "abc", "Jane")

        assert excinfo.value.status_code == 422
        assert excinfo.value.detail == "invalid from"

    def test_network_failure_raises(self, mailer, session):
        session.post.side_effect = requests.ConnectionError("down")

        with pytest.raises(EmailDeliveryError):
            mailer.send_verification("jane@example.com", "abc")
