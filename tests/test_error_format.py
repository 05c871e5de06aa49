"""Tests for error message formatting and rich markup escaping."""

from io import StringIO

from agent_os_cli.utils.error_format import escape_markup
from agent_os_cli.utils.error_format import format_error_message
from rich.console import Console


class TestFormatErrorMessage:
    def test_empty_permission_error_gets_friendly_text(self):
        assert format_error_message(PermissionError()) == "PermissionError: Permission denied."

    def test_message_kept(self):
        assert format_error_message(ValueError("invalid input"), include_type=False) == "invalid input"
        assert format_error_message(ValueError("invalid input")) == "ValueError: invalid input"

    def test_unknown_empty_exception(self):
        assert format_error_message(RuntimeError()) == "RuntimeError: (no additional details)"


class TestEscapeMarkup:
    def test_checklist_brackets_survive(self):
        """Template text like ``- [ ] task`` and ``[tag]`` must print literally."""
        buf = StringIO()
        c = Console(file=buf, force_terminal=False, no_color=True)
        c.print(f"[yellow]Warning:[/yellow] {escape_markup('unresolved [x] in [/standards/a.md]')}")
        assert "unresolved [x] in [/standards/a.md]" in buf.getvalue()

    def test_non_string_input(self):
        assert escape_markup(ValueError("boom")) == "boom"
        assert escape_markup(None) == "None"

    def test_plain_text_unchanged(self):
        assert escape_markup("Profile not found") == "Profile not found"
