"""
Built-in MCP prompts.

Exposes: welcome, plus one ``tchncrt.<command>`` prompt per workflow
command template found in the packaged templates directory (and in an
optional extra directory).
"""

import logging
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple

from ..models import PromptArgument, PromptDefinition
from ..registry import Registry
from ..workspace import WorkspaceContext, detect_workspace_context

logger = logging.getLogger(__name__)

COMMAND_PREFIX = "tchncrt."
DEFAULT_DESCRIPTION = "Execute workflow command"


def _get_commands_dir() -> Path:
    """Get the packaged command templates directory."""
    return Path(__file__).resolve().parents[1] / "templates" / "commands"


WELCOME = PromptDefinition(
    name="welcome",
    description="A welcome message for new users",
    arguments=[
        PromptArgument(name="name", description="User's name", required=False)
    ]
)


def welcome(arguments: Dict[str, Any]) -> List[Dict[str, str]]:
    name = arguments.get("name") or "there"
    return [{
        "role": "user",
        "content": f"Hello, {name}! Welcome to Technocrat MCP Server."
    }]


# ============================================================================
# Workflow command prompts
# ============================================================================

def parse_command_template(content: str) -> Tuple[str, str]:
    """
    Split a command template into its description and workflow body.

    The description comes from a ``description:`` line in the leading
    ``---`` front matter; the workflow is everything after it, starting at
    the first non-blank line.

    Returns:
        (description, workflow)
    """
    description = ""
    workflow_lines: List[str] = []
    in_front_matter = False
    in_workflow = False

    for i, line in enumerate(content.split("\n")):
        stripped = line.strip()
        if i == 0 and stripped == "---":
            in_front_matter = True
            continue
        if in_front_matter:
            if stripped == "---":
                in_front_matter = False
            elif line.startswith("description:"):
                description = line[len("description:"):].strip().strip('"')
            continue
        if not in_workflow and stripped:
            in_workflow = True
        if in_workflow:
            workflow_lines.append(line)

    return description or DEFAULT_DESCRIPTION, "\n".join(workflow_lines)


def build_prompt_message(
    command_name: str,
    workflow: str,
    user_input: str,
    context: Optional[WorkspaceContext] = None,
) -> str:
    """Render the workflow instructions for one command invocation."""
    context = context or WorkspaceContext()
    body = workflow.replace("$ARGUMENTS", user_input)
    for placeholder, value in (
        ("{project_name}", context.project_name),
        ("{feature_name}", context.feature_name),
        ("{workspace_root}", context.root),
    ):
        body = body.replace(placeholder, value)

    title = command_name.replace("-", " ").replace("_", " ").title()
    parts = [f"# Technocrat {title} Workflow\n\n"]
    if user_input:
        parts.append(f"## User Input\n\n{user_input}\n\n---\n\n")
    parts.append("## Workflow Instructions\n\n")
    parts.append(body)
    return "".join(parts)


def list_command_templates(directory: Path) -> List[Path]:
    """Markdown templates in ``directory``, sorted by file name."""
    if not directory.is_dir():
        return []
    return sorted(path for path in directory.iterdir() if path.is_file() and path.suffix == ".md")


def _make_command_builder(command_name: str, workflow: str):
    def build(arguments: Dict[str, Any]) -> List[Dict[str, str]]:
        user_input = arguments.get("user_input") or ""
        if not isinstance(user_input, str):
            user_input = str(user_input)
        message = build_prompt_message(command_name, workflow, user_input, detect_workspace_context())
        return [{"role": "user", "content": message}]

    return build


def register_command_prompts(registry: Registry, directory: Path) -> int:
    """
    Register one prompt per command template in ``directory``.

    A template that cannot be read is logged and skipped. A name that is
    already registered raises DuplicateName.

    Returns:
        Number of prompts registered
    """
    registered = 0
    for path in list_command_templates(directory):
        command_name = path.stem
        try:
            content = path.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as e:
            logger.warning(f"Skipping command template {path}: {e}")
            continue

        description, workflow = parse_command_template(content)
        definition = PromptDefinition(
            name=COMMAND_PREFIX + command_name,
            description=description,
            arguments=[
                PromptArgument(
                    name="user_input",
                    description="Optional user input to guide the workflow",
                    required=False
                )
            ]
        )
        registry.register_prompt(definition, _make_command_builder(command_name, workflow))
        registered += 1

    logger.info(f"Registered {registered} command prompts from {directory}")
    return registered


def register_prompts(registry: Registry, extra_commands_dir: Optional[str] = None) -> None:
    registry.register_prompt(WELCOME, welcome)
    register_command_prompts(registry, _get_commands_dir())
    if extra_commands_dir:
        register_command_prompts(registry, Path(extra_commands_dir))
