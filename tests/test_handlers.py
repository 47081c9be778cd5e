"""
Tests for the built-in capabilities and workspace detection.
"""

import json

import pytest

from technocrat_mcp.config import Settings
from technocrat_mcp.errors import DuplicateName
from technocrat_mcp.handlers import build_registry
from technocrat_mcp.handlers.prompts import (
    DEFAULT_DESCRIPTION,
    build_prompt_message,
    parse_command_template,
    register_command_prompts,
)
from technocrat_mcp.handlers.tools import echo, system_info
from technocrat_mcp.models import CapabilityKind
from technocrat_mcp.registry import Registry
from technocrat_mcp.workspace import WorkspaceContext, detect_workspace_context


TEMPLATE = """---
description: "Draft the spec"
scripts:
  sh: scripts/create.sh
---

Write the spec for {project_name}.

$ARGUMENTS
"""


# ============================================================================
# Command templates
# ============================================================================

def test_parse_command_template():
    description, workflow = parse_command_template(TEMPLATE)
    assert description == "Draft the spec"
    assert workflow.startswith("Write the spec for {project_name}.")
    assert "scripts:" not in workflow


def test_parse_template_without_front_matter():
    description, workflow = parse_command_template("\n\nJust do it.\n")
    assert description == DEFAULT_DESCRIPTION
    assert workflow == "Just do it.\n"


def test_build_prompt_message_with_input():
    context = WorkspaceContext(root="/work/albums", project_name="Albums", feature_name="001-photos")
    message = build_prompt_message("spec", "For {project_name}: $ARGUMENTS", "sort by date", context)
    assert message == (
        "# Technocrat Spec Workflow\n\n"
        "## User Input\n\nsort by date\n\n---\n\n"
        "## Workflow Instructions\n\n"
        "For Albums: sort by date"
    )


def test_build_prompt_message_without_input():
    message = build_prompt_message("update-context", "Body", "")
    assert message == "# Technocrat Update Context Workflow\n\n## Workflow Instructions\n\nBody"


def test_register_command_prompts(tmp_path):
    (tmp_path / "spec.md").write_text(TEMPLATE)
    (tmp_path / "notes.txt").write_text("ignored")
    registry = Registry()
    assert register_command_prompts(registry, tmp_path) == 1

    definition, builder = registry.lookup(CapabilityKind.PROMPT, "tchncrt.spec")
    assert definition.description == "Draft the spec"
    assert [(a.name, a.required) for a in definition.arguments] == [("user_input", False)]
    messages = builder({"user_input": "photo albums"})
    assert messages[0]["role"] == "user"
    assert "photo albums" in messages[0]["content"]


def test_unreadable_template_is_skipped(tmp_path):
    (tmp_path / "bad.md").write_bytes(b"\xff\xfe\x00")
    (tmp_path / "good.md").write_text("Do the thing.")
    registry = Registry()
    assert register_command_prompts(registry, tmp_path) == 1


def test_extra_commands_dir_collision_is_fatal(tmp_path):
    (tmp_path / "spec.md").write_text(TEMPLATE)
    with pytest.raises(DuplicateName):
        build_registry(Settings(commands_dir=str(tmp_path)))


def test_packaged_templates_registered():
    registry = build_registry()
    names = [p.name for p in registry.list(CapabilityKind.PROMPT)]
    assert names[0] == "welcome"
    assert {"tchncrt.spec", "tchncrt.plan", "tchncrt.tasks"} <= set(names)


# ============================================================================
# Tools
# ============================================================================

def test_echo():
    assert echo({"message": "hi"}) == "hi"


def test_system_info(tmp_path, monkeypatch):
    (tmp_path / ".git").mkdir()
    monkeypatch.chdir(tmp_path)
    info = json.loads(system_info({}))
    assert info["server"] == "technocrat"
    assert info["workspace"]["project_name"] == tmp_path.name


# ============================================================================
# Workspace
# ============================================================================

def test_detect_workspace_feature(tmp_path):
    (tmp_path / "memory").mkdir()
    feature_dir = tmp_path / "specs" / "001-photos" / "contracts"
    feature_dir.mkdir(parents=True)

    context = detect_workspace_context(feature_dir)
    assert context.root == str(tmp_path.resolve())
    assert context.feature_name == "001-photos"
    assert context.project_name == tmp_path.name


def test_project_name_from_constitution_heading(tmp_path):
    (tmp_path / "memory").mkdir()
    (tmp_path / "memory" / "constitution.md").write_text("# Constitution\n\n## Project Name\n\nAlbums\n")
    assert detect_workspace_context(tmp_path).project_name == "Albums"


def test_project_name_from_first_heading(tmp_path):
    (tmp_path / "memory").mkdir()
    (tmp_path / "memory" / "constitution.md").write_text("# Photo Albums\n\nPrinciples...\n")
    assert detect_workspace_context(tmp_path).project_name == "Photo Albums"


def test_generic_heading_ignored(tmp_path):
    (tmp_path / "memory").mkdir()
    (tmp_path / "memory" / "constitution.md").write_text("# Project Constitution\n\nText\n")
    assert detect_workspace_context(tmp_path).project_name == tmp_path.name


def test_no_markers_falls_back_to_start(tmp_path):
    start = tmp_path / "loose"
    start.mkdir()
    context = detect_workspace_context(start)
    # tmp_path has no markers, but a parent directory might; only assert shape
    assert context.root
    assert context.project_name
