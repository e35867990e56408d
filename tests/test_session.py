"""Tests for the session token holder."""

import logging

import pytest

from ltcms_client.session import SessionToken


class TestSessionToken:
    """Tests for SessionToken."""

    def test_starts_empty(self) -> None:
        """Hold no token by default."""
        assert SessionToken().get() is None

    def test_stores_non_blank_string(self) -> None:
        """Store a valid token verbatim."""
        token = SessionToken()

        token.set("abc.def.ghi")

        assert token.get() == "abc.def.ghi"
        assert token

    @pytest.mark.parametrize("value", ["", "   ", 42, {"token": "x"}])
    def test_invalid_value_clears_and_warns(self, value: object, caplog) -> None:
        """Clear the slot and log a diagnostic for invalid values."""
        token = SessionToken("valid")

        with caplog.at_level(logging.WARNING, logger="ltcms_client.session"):
            token.set(value)

        assert token.get() is None
        assert "invalid session token" in caplog.text

    def test_none_clears_with_debug_note(self, caplog) -> None:
        """Treat None as an explicit clear, logged at debug level only."""
        token = SessionToken("valid")

        with caplog.at_level(logging.DEBUG, logger="ltcms_client.session"):
            token.set(None)

        assert token.get() is None
        assert [r.levelno for r in caplog.records] == [logging.DEBUG]
        assert "set to None" in caplog.text

    def test_clear(self) -> None:
        """Drop the token on clear()."""
        token = SessionToken("valid")

        token.clear()

        assert token.get() is None
        assert not token
