"""Semantic version tagging."""

import logging
import re
from dataclasses import dataclass
from typing import Callable, List, Optional

from ..core.config import GitPlusConfig
from ..core.types import GitPlusError, WorkflowError
from ..git.operations import GitOperations

logger = logging.getLogger(__name__)

_VERSION_RE = re.compile(r"^v?(\d+)\.(\d+)\.(\d+)")

MAJOR = "major"
MINOR = "minor"
PATCH = "patch"

_BUMP_ALIASES = {
    "major": MAJOR, "m": MAJOR, "breaking": MAJOR,
    "minor": MINOR, "n": MINOR, "feature": MINOR, "f": MINOR,
    "patch": PATCH, "p": PATCH, "bug": PATCH, "b": PATCH, "fix": PATCH,
}

BUMP_CHOICES = sorted(_BUMP_ALIASES)


@dataclass(frozen=True)
class Version:
    """A major.minor.patch version."""
    major: int
    minor: int
    patch: int

    def bump(self, kind: str) -> 'Version':
        if kind == MAJOR:
            return Version(self.major + 1, 0, 0)
        if kind == MINOR:
            return Version(self.major, self.minor + 1, 0)
        if kind == PATCH:
            return Version(self.major, self.minor, self.patch + 1)
        raise ValueError(f"Unknown version bump: {kind}")

    def tag(self, prefix: str = "v") -> str:
        return f"{prefix}{self.major}.{self.minor}.{self.patch}"

    def __str__(self) -> str:
        return f"{self.major}.{self.minor}.{self.patch}"


def parse_version(tag: str) -> Version:
    """Parse a tag such as v1.2.3 or 1.2.3-rc1."""
    match = _VERSION_RE.match(tag.strip())
    if not match:
        raise ValueError(f"Invalid version format: {tag}")
    return Version(*(int(part) for part in match.groups()))


def normalize_bump(name: str) -> Optional[str]:
    """Map a bump name or alias to major, minor or patch."""
    return _BUMP_ALIASES.get(name.strip().lower())


@dataclass
class NewTagResult:
    """Outcome of the new tag workflow."""
    current_tag: str
    new_tag: str
    bump: str
    created: bool = False
    pushed: bool = False
    cancelled: bool = False


class TagWorkflow:
    """Creates the next semantic version tag after the latest one."""

    def __init__(self, git_ops: GitOperations,
                 confirm: Callable[[str, bool], bool],
                 config: Optional[GitPlusConfig] = None):
        self.git_ops = git_ops
        self.confirm = confirm
        self.config = config or GitPlusConfig()

    def current_version(self) -> tuple:
        """Latest tag and its parsed version."""
        tag = self.git_ops.get_latest_tag()
        if tag is None:
            raise WorkflowError("No tags found. Create the first tag manually, e.g. git tag v0.1.0")
        try:
            return tag, parse_version(tag)
        except ValueError as e:
            raise WorkflowError(f"Cannot parse the latest tag {tag}: {e}") from e

    def new_tag(self, bump: str, message: Optional[str] = None,
                push: bool = False, dry_run: bool = False) -> NewTagResult:
        kind = normalize_bump(bump)
        if kind is None:
            raise WorkflowError(
                f"Invalid version type: {bump}. Use one of: {', '.join(BUMP_CHOICES)}")

        current_tag, version = self.current_version()
        new_tag = version.bump(kind).tag(self.config.tag_prefix)
        result = NewTagResult(current_tag=current_tag, new_tag=new_tag, bump=kind)
        logger.info("Next %s version after %s is %s", kind, current_tag, new_tag)

        if dry_run:
            return result

        if not self.confirm(f"Create tag {new_tag}?", True):
            result.cancelled = True
            return result

        try:
            self.git_ops.create_tag(new_tag, message)
        except GitPlusError as e:
            raise WorkflowError(f"Failed to create tag {new_tag}: {e}") from e
        result.created = True

        if push:
            try:
                self.git_ops.push_tag(new_tag, self.config.remote)
            except GitPlusError as e:
                raise WorkflowError(f"Failed to push tag {new_tag}: {e}") from e
            result.pushed = True
        return result

    def reset_tag(self, tag: str, push: bool = True) -> List[str]:
        """Move tag to HEAD: delete it locally and on the remote, recreate, push.

        A tag that is absent locally or on the remote is not an error; the
        returned list says which deletions did not happen.
        """
        warnings = []
        if not self.git_ops.delete_tag(tag):
            warnings.append(f"Local tag {tag} was not deleted (it may not exist)")
        if push and not self.git_ops.delete_remote_tag(tag, self.config.remote):
            warnings.append(f"Tag {tag} was not deleted on {self.config.remote} (it may not exist)")
        for warning in warnings:
            logger.warning(warning)

        try:
            self.git_ops.create_tag(tag)
        except GitPlusError as e:
            raise WorkflowError(f"Failed to recreate tag {tag}: {e}") from e
        if push:
            try:
                self.git_ops.push_tag(tag, self.config.remote)
            except GitPlusError as e:
                raise WorkflowError(f"Failed to push tag {tag}: {e}") from e
        return warnings
