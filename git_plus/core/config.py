"""Configuration management for git plus tool."""

from dataclasses import dataclass, field
from pathlib import Path
from typing import Mapping, Optional, Tuple
import os

STATE_DIR_ENV = "GIT_PLUS_HOME"
KEEP_STASH_ENV = "GIT_PLUS_KEEP_STASH"

_FALSE_VALUES = ("", "0", "false", "no", "off")


def default_state_dir() -> Path:
    return Path.home() / ".git-plus"


@dataclass
class GitPlusConfig:
    """Configuration for git plus operations."""

    # Session state
    state_dir: Path = field(default_factory=default_state_dir)
    state_file: str = "pause-state.json"

    # Stash messages
    pause_stash_prefix: str = "git-pause"
    pr_stash_prefix: str = "git-pr-checkout"

    # Pop the stash back when the branch switch after stashing fails
    restore_stash_on_failure: bool = True

    # Branch settings
    protected_branches: Tuple[str, ...] = ("main", "master", "develop")
    remote: str = "origin"

    # Tag settings
    tag_prefix: str = "v"

    def __post_init__(self):
        """Validate configuration parameters after initialization."""
        self.state_dir = Path(self.state_dir).expanduser()

        if not self.state_file or not isinstance(self.state_file, str):
            raise ValueError(
                f"state_file must be a non-empty string, got {self.state_file!r}")
        if os.sep in self.state_file or (os.altsep and os.altsep in self.state_file):
            raise ValueError(
                f"state_file must be a file name, not a path: {self.state_file}")

        for name in ("pause_stash_prefix", "pr_stash_prefix"):
            value = getattr(self, name)
            if not isinstance(value, str) or not value.strip():
                raise ValueError(f"{name} must be a non-empty string, got {value!r}")
            if "\n" in value:
                raise ValueError(f"{name} must be a single line: {value!r}")

        if not isinstance(self.restore_stash_on_failure, bool):
            raise ValueError(
                f"restore_stash_on_failure must be a bool, got {type(self.restore_stash_on_failure)}")

        self.protected_branches = tuple(self.protected_branches)

        # Validate names don't contain characters git rejects in refs
        invalid_chars = [' ', '\n', '\t', '..',
                         '~', '^', ':', '?', '*', '[', '\\']
        for char in invalid_chars:
            if char in self.remote:
                raise ValueError(
                    f"remote contains invalid character '{char}': {self.remote}")
            if char in self.tag_prefix:
                raise ValueError(
                    f"tag_prefix contains invalid character '{char}': {self.tag_prefix}")
        if not self.remote:
            raise ValueError("remote must not be empty")

    @property
    def state_path(self) -> Path:
        """Full path of the pause session file."""
        return self.state_dir / self.state_file

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> 'GitPlusConfig':
        """Create config from environment variables."""
        environ = os.environ if environ is None else environ
        kwargs = {}
        state_dir = environ.get(STATE_DIR_ENV)
        if state_dir:
            kwargs['state_dir'] = Path(state_dir)
        if environ.get(KEEP_STASH_ENV, "").strip().lower() not in _FALSE_VALUES:
            kwargs['restore_stash_on_failure'] = False
        return cls(**kwargs)

    @classmethod
    def from_cli_args(cls, args, environ: Optional[Mapping[str, str]] = None) -> 'GitPlusConfig':
        """Create config from command line arguments, falling back to the environment."""
        config = cls.from_env(environ)
        overrides = {}
        state_dir = getattr(args, 'state_dir', None)
        if state_dir:
            overrides['state_dir'] = Path(state_dir)
        if getattr(args, 'keep_stash_on_failure', False):
            overrides['restore_stash_on_failure'] = False
        if not overrides:
            return config
        try:
            return config.with_overrides(**overrides)
        except ValueError as e:
            raise ValueError(
                f"Invalid configuration from command line arguments: {e}") from e

    def with_overrides(self, **kwargs) -> 'GitPlusConfig':
        """Create a new config with specific overrides."""
        fields = {f.name: getattr(self, f.name)
                  for f in self.__dataclass_fields__.values()}
        fields.update(kwargs)
        return GitPlusConfig(**fields)
