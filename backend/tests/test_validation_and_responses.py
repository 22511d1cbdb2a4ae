"""Tests for validators and inline response pages."""
import pytest

from bang.services.commands import parse_reminder_command, strip_hide_flag, CommandValidationError
from bang.services.responses import (
    NO_STORE,
    go_back,
    go_back_with_alert,
    redirect,
    redirect_with_alert,
)
from bang.services.validation import (
    is_only_letters_and_numbers,
    is_url_like,
    is_valid_email,
    is_valid_url,
)


class TestValidation:

    def test_is_valid_url(self):
        assert is_valid_url("https://example.com/path?q=1")
        assert is_valid_url("mailto:someone@example.com")
        assert not is_valid_url("https://")
        assert not is_valid_url("example.com")
        assert not is_valid_url("https://exa mple.com")
        assert not is_valid_url("")

    def test_is_valid_email(self):
        assert is_valid_email("a@b.co")
        assert not is_valid_email("a@b")
        assert not is_valid_email("a b@c.com")

    def test_is_only_letters_and_numbers(self):
        assert is_only_letters_and_numbers("abc123")
        assert not is_only_letters_and_numbers("my_x")
        assert not is_only_letters_and_numbers("")

    def test_is_url_like(self):
        assert is_url_like("https://a.com")
        assert is_url_like("www.example.com")
        assert is_url_like("docs.example.com")
        assert not is_url_like("plants")
        assert not is_url_like("2026-12-25")


class TestCommandArgumentHelpers:

    def test_strip_hide_flag(self):
        assert strip_hide_flag("My  title --hide") == ("My title", True)
        assert strip_hide_flag("--hide") == ("", True)
        assert strip_hide_flag("keep --hidden") == ("keep --hidden", False)

    def test_reminder_forms(self):
        assert parse_reminder_command("monthly Rent") == ("monthly", "Rent", "Rent", False)
        assert parse_reminder_command("weekly|Review|notes") == ("weekly", "Review", "notes", False)
        assert parse_reminder_command("Read https://a.com") == (None, "Read", "https://a.com", False)
        assert parse_reminder_command("https://a.com") == (None, "Untitled", "https://a.com", True)
        assert parse_reminder_command("Trip 2027-01-02") == (None, "Trip", "2027-01-02", False)

    def test_reminder_requires_content(self):
        with pytest.raises(CommandValidationError) as exc:
            parse_reminder_command("daily")
        assert exc.value.message == "Reminder content is required"
        assert exc.value.status_code == 422


class TestResponses:

    def test_redirect_headers(self):
        response = redirect("https://a.com", "private, max-age=3600", vary_cookie=True)
        assert response.status_code == 302
        assert response.headers["location"] == "https://a.com"
        assert response.headers["cache-control"] == "private, max-age=3600"
        assert response.headers["vary"] == "Cookie"

    def test_go_back(self):
        response = go_back()
        assert response.status_code == 200
        assert response.headers["cache-control"] == NO_STORE

    def test_alert_message_is_escaped(self):
        response = go_back_with_alert("<img src=x onerror=alert(1)> \"quoted\"")
        body = response.body.decode()
        assert response.status_code == 422
        assert "&lt;img src=x onerror=alert(1)&gt;" in body
        assert "<img" not in body
        assert "\\u003cimg" in body

    def test_interstitial_escapes_destination(self):
        response = redirect_with_alert('https://a.com/?q="</script>', "hi")
        body = response.body.decode()
        assert "</script>\"" not in body
        assert "&quot;&lt;/script&gt;" in body
