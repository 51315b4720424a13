"""Detection and removal of duplicate stashes."""

import hashlib
import logging
from dataclasses import dataclass, field
from typing import Callable, Dict, List

from ..core.types import GitPlusError
from ..git.operations import GitOperations

logger = logging.getLogger(__name__)

# Stash commit parts: the worktree state, the index (^2) and untracked files (^3)
_STASH_PARTS = (("WORKTREE", ""), ("INDEX", "^2"), ("UNTRACKED", "^3"))


@dataclass
class StashInfo:
    """A stash with the fingerprint of its content."""
    index: int
    name: str
    files: List[str]
    fingerprint: str


@dataclass
class StashCleanupResult:
    """Outcome of a cleanup run."""
    groups: List[List[StashInfo]] = field(default_factory=list)
    deleted: List[str] = field(default_factory=list)
    failed: List[str] = field(default_factory=list)
    cancelled: bool = False
    total: int = 0

    @property
    def duplicate_count(self) -> int:
        return sum(len(group) - 1 for group in self.groups)


def find_duplicates(infos: List[StashInfo]) -> List[List[StashInfo]]:
    """Group stashes with identical content.

    Each group is sorted by index so the newest stash comes first; groups
    are ordered by their newest member.
    """
    by_fingerprint: Dict[str, List[StashInfo]] = {}
    for info in infos:
        by_fingerprint.setdefault(info.fingerprint, []).append(info)

    groups = [sorted(group, key=lambda i: i.index)
              for group in by_fingerprint.values() if len(group) > 1]
    groups.sort(key=lambda group: group[0].index)
    return groups


class StashCleanup:
    """Removes stashes whose files and contents duplicate a newer stash."""

    def __init__(self, git_ops: GitOperations, confirm: Callable[[str, bool], bool]):
        self.git_ops = git_ops
        self.confirm = confirm
        self.warnings: List[str] = []

    def fingerprint(self, name: str, files: List[str]) -> str:
        """Hash the file list and every part of every file stored in the stash."""
        digest = hashlib.sha256()
        digest.update("\n".join(files).encode())
        digest.update(b"\n---\n")

        for path in files:
            digest.update(f"FILE:{path}\n".encode())
            for label, suffix in _STASH_PARTS:
                content = self.git_ops.show_file(f"{name}{suffix}", path)
                if content is None:
                    continue
                digest.update(f"PART:{label}\n".encode())
                digest.update(content)
                if not content.endswith(b"\n"):
                    digest.update(b"\n")

        return digest.hexdigest()

    def analyze(self) -> List[StashInfo]:
        """Fingerprint every stash. Stashes that cannot be read are skipped."""
        infos = []
        for entry in self.git_ops.list_stashes():
            try:
                files = self.git_ops.get_stash_files(entry.name)
                fingerprint = self.fingerprint(entry.name, files)
            except GitPlusError as e:
                message = f"Skipping {entry.name}: {e}"
                logger.warning(message)
                self.warnings.append(message)
                continue
            infos.append(StashInfo(index=entry.index, name=entry.name,
                                   files=files, fingerprint=fingerprint))
        return infos

    def run(self) -> StashCleanupResult:
        """Find duplicate stashes and drop all but the newest of each group."""
        infos = self.analyze()
        result = StashCleanupResult(total=len(infos))
        if len(infos) < 2:
            return result

        result.groups = find_duplicates(infos)
        if not result.groups:
            return result

        if not self.confirm(
                f"Delete {result.duplicate_count} duplicate stashes, keeping the newest of each group?",
                False):
            result.cancelled = True
            return result

        to_delete = [info for group in result.groups for info in group[1:]]
        # Highest index first so lower indexes stay valid while dropping
        for info in sorted(to_delete, key=lambda i: i.index, reverse=True):
            try:
                self.git_ops.drop_stash(info.index)
            except GitPlusError as e:
                logger.warning("Failed to drop %s: %s", info.name, e)
                result.failed.append(info.name)
            else:
                logger.info("Dropped %s", info.name)
                result.deleted.append(info.name)
        return result
