"""Tests for tag scanning."""

from agent_os_cli.templates.scanner import find_next_tag
from agent_os_cli.templates.scanner import is_macro_tag
from agent_os_cli.templates.scanner import iter_tags
from agent_os_cli.templates.scanner import parse_conditional
from agent_os_cli.templates.scanner import parse_phase


class TestFindNextTag:
    def test_simple(self):
        match = find_next_tag("before {{workflows/a}} after")
        assert match.inner == "workflows/a"
        assert (match.start, match.end) == (7, 22)
        assert match.text == "{{workflows/a}}"

    def test_none_when_absent_or_unclosed(self):
        assert find_next_tag("no tags here") is None
        assert find_next_tag("open {{ but never closed") is None

    def test_from_offset(self):
        buffer = "{{a}} {{b}}"
        assert find_next_tag(buffer, 1).inner == "b"

    def test_nested_open_restarts_at_inner(self):
        match = find_next_tag("{{outer {{inner}} rest}}")
        assert match.inner == "inner"

    def test_tags_do_not_span_lines(self):
        match = find_next_tag("{{broken\n}} {{ok}}")
        assert match.inner == "ok"

    def test_iter_tags_left_to_right(self):
        assert [m.inner for m in iter_tags("{{a}}{{b}} x {{c}}")] == ["a", "b", "c"]

    def test_non_ascii_text(self):
        assert [m.inner for m in iter_tags("héllo {{IF ü}} ✓ {{ENDIF ü}}")] == ["IF ü", "ENDIF ü"]


class TestTagGrammar:
    def test_parse_conditional(self):
        assert parse_conditional("IF use_claude_code_subagents") == ("IF", "use_claude_code_subagents")
        assert parse_conditional(" ENDUNLESS flag ") == ("ENDUNLESS", "flag")
        assert parse_conditional("IF Bad-Flag") is None
        assert parse_conditional("IFX flag") is None

    def test_parse_phase(self):
        assert parse_phase("PHASE 2: @agent-os/commands/plan-product/2-roadmap.md") == (
            2,
            "@agent-os/commands/plan-product/2-roadmap.md",
        )
        assert parse_phase("PHASE x: foo") is None

    def test_is_macro_tag(self):
        assert is_macro_tag("workflows/planning/gather")
        assert is_macro_tag("standards/*")
        assert is_macro_tag("IF Bad-Flag")
        assert is_macro_tag("PHASE 1: x")
        assert not is_macro_tag("role_name")
        assert not is_macro_tag("agent_os_version")
        assert not is_macro_tag("")
