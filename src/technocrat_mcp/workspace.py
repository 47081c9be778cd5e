"""
Workspace context detection.

Figures out which project (and which feature under ``specs/``) the server
was started in, so prompts and tools can refer to it.
"""

import logging
from pathlib import Path
from typing import Optional, Union

from pydantic import BaseModel, Field

logger = logging.getLogger(__name__)

_GENERIC_HEADINGS = ("constitution", "about", "overview")


class WorkspaceContext(BaseModel):
    """Detected workspace information."""
    root: str = Field("", description="Absolute path to workspace root")
    project_name: str = Field("", description="Project name")
    feature_name: str = Field("", description="Current feature when inside specs/<feature>/")


def find_workspace_root(start: Path) -> Optional[Path]:
    """Walk upward to the first directory holding memory/ or .git/."""
    for directory in [start, *start.parents]:
        if (directory / "memory").is_dir() or (directory / ".git").is_dir():
            return directory
    return None


def extract_feature_name(cwd: Path, root: Path) -> str:
    try:
        parts = cwd.relative_to(root).parts
    except ValueError:
        return ""
    if len(parts) >= 2 and parts[0] == "specs":
        return parts[1]
    return ""


def project_name_from_constitution(root: Path) -> str:
    """Read the project name from memory/constitution.md, if it names one."""
    constitution = root / "memory" / "constitution.md"
    try:
        lines = constitution.read_text(encoding="utf-8").splitlines()
    except OSError:
        return ""

    # "## Project Name" heading followed by the value
    for i, line in enumerate(lines):
        line = line.strip()
        if line.startswith("## Project") or line.lower() == "## project name":
            for following in lines[i + 1:]:
                following = following.strip()
                if following and not following.startswith("#"):
                    return following

    # Otherwise the first top-level heading, unless it is a generic title
    for line in lines:
        line = line.strip()
        if line.startswith("# "):
            heading = line[2:].strip()
            if not any(word in heading.lower() for word in _GENERIC_HEADINGS):
                return heading
            break

    return ""


def detect_workspace_context(cwd: Optional[Union[str, Path]] = None) -> WorkspaceContext:
    """
    Analyze a directory (default: the current one) for project context.

    Args:
        cwd: Directory to start from

    Returns:
        WorkspaceContext; fields are empty strings when nothing is found
    """
    try:
        start = Path(cwd).resolve() if cwd is not None else Path.cwd()
    except OSError as e:
        logger.warning(f"Could not resolve working directory: {e}")
        return WorkspaceContext()

    root = find_workspace_root(start) or start
    project_name = project_name_from_constitution(root) or root.name

    return WorkspaceContext(
        root=str(root),
        project_name=project_name,
        feature_name=extract_feature_name(start, root),
    )
