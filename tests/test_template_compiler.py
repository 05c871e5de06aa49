"""Tests for the compilation pipeline."""

from datetime import date

import pytest
from agent_os_cli.config import CompileConfig
from agent_os_cli.profiles import ProfileResolver
from agent_os_cli.templates.compiler import PLAYWRIGHT_TOOLS
from agent_os_cli.templates.compiler import DocumentCompiler
from agent_os_cli.templates.compiler import compile_document
from agent_os_cli.templates.compiler import expand_tools
from agent_os_cli.templates.compiler import substitute_roles
from agent_os_cli.templates.models import DocumentKind
from agent_os_cli.templates.models import IssueKind

AGENT = """---
name: implementer
tools: Write, Read, Bash, Playwright
---

{{IF use_claude_code_subagents}}
You are a subagent.
{{ENDIF use_claude_code_subagents}}
{{workflows/implementation/implement-tasks}}

Compiled by Agent OS {{agent_os_version}} on {{compiled_date}}.
"""


@pytest.fixture
def compiler(base_dir, make_profile):
    make_profile(
        "default",
        {
            "agents/implementer.md": AGENT,
            "workflows/implementation/implement-tasks.md": "Implement the tasks.\n",
        },
    )
    return DocumentCompiler(ProfileResolver.for_base_dir(base_dir), CompileConfig(), today=date(2025, 1, 2))


class TestExpandTools:
    def test_playwright_expanded_in_place(self):
        out = expand_tools("---\ntools: Write, Playwright, Read\n---\nbody\n")
        tools_line = out.splitlines()[1]
        assert tools_line == "tools: Write, " + ", ".join(PLAYWRIGHT_TOOLS) + ", Read"

    def test_only_front_matter_touched(self):
        text = "---\nname: x\n---\ntools: Playwright\n"
        assert expand_tools(text) == text

    def test_without_front_matter(self):
        assert expand_tools("tools: Playwright\n") == "tools: Playwright\n"


class TestSubstituteRoles:
    def test_keys_replaced(self):
        roles = {"role_name": "backend", "role_description": "builds APIs"}
        out = substitute_roles("I am {{role_name}}, {{role_description}}. {{other}}", roles)
        assert out == "I am backend, builds APIs. {{other}}"


class TestDocumentCompiler:
    def test_full_pipeline_for_agent(self, compiler):
        artifact = compiler.compile("agents/implementer.md", DocumentKind.AGENT)

        assert artifact.ok
        assert "You are a subagent." in artifact.content
        assert "Implement the tasks." in artifact.content
        assert "Compiled by Agent OS 2.1.0 on 2025-01-02." in artifact.content
        assert "mcp__playwright__browser_close" in artifact.content
        assert "{{" not in artifact.content

    def test_commands_keep_tools_line(self, compiler):
        artifact = compiler.compile("agents/implementer.md", DocumentKind.COMMAND)
        assert "tools: Write, Read, Bash, Playwright" in artifact.content

    def test_lazy_mode_from_config(self, base_dir, compiler):
        lazy = DocumentCompiler(compiler.resolver, CompileConfig(lazy_load_workflows=True))
        artifact = lazy.compile("agents/implementer.md", DocumentKind.AGENT)
        assert "@agent-os/workflows/implementation/implement-tasks.md" in artifact.content

    def test_role_data(self, compiler):
        artifact = compiler.compile("x.md", DocumentKind.AGENT, text="Role: {{role}}", role_data={"role": "tester"})
        assert artifact.content == "Role: tester"

    def test_missing_source_is_an_error_not_an_exception(self, compiler):
        artifact = compiler.compile("agents/ghost.md", DocumentKind.AGENT)
        assert artifact.has_errors
        assert artifact.content == ""
        assert artifact.errors[0].kind is IssueKind.RESOLUTION

    def test_issues_collected(self, compiler):
        text = "{{IF use_claude_code_subagents}}\n{{workflows/missing}}\n"
        artifact = compiler.compile("x.md", DocumentKind.COMMAND, text=text)

        assert not artifact.has_errors
        assert {issue.kind for issue in artifact.warnings} == {IssueKind.TAG_STRUCTURE, IssueKind.RESOLUTION}

    def test_compile_document_helper(self, base_dir, compiler):
        artifact = compile_document("x.md", DocumentKind.COMMAND, compiler.resolver, CompileConfig(), text="plain")
        assert artifact.content == "plain"
        assert artifact.source == "x.md"
