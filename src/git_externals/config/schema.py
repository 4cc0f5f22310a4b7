"""Declaration and settings models."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from git_externals.engine.errors import ConfigError

COMMIT_HASH_LENGTH = 40
DEFAULT_BRANCH = "master"


class Settings(BaseSettings):
    """Tool settings.

    Every field can be overridden with a ``GIT_EXTERNALS_`` prefixed
    environment variable, e.g. ``GIT_EXTERNALS_CONFIG_FILE=.externals``.
    """

    model_config = SettingsConfigDict(env_prefix="GIT_EXTERNALS_")

    config_file: str = ".gitexternals"
    ignore_file: str = ".gitignore"
    git: str = "git"


class External(BaseModel):
    """A declared external repository, pinned to a branch or a commit.

    Declarations are pure data; having both ``branch`` and ``commit`` set is
    accepted here and reported later as an ambiguous definition.
    """

    model_config = ConfigDict(frozen=True)

    name: str = Field(min_length=1)
    url: str
    path: str
    branch: str | None = None
    commit: str | None = None

    @property
    def ambiguous(self) -> bool:
        return self.branch is not None and self.commit is not None

    @property
    def target(self) -> str:
        """Human-readable declared target (``branch`` or ``commit``)."""
        if self.ambiguous:
            return f"{self.branch} / {self.commit}"
        return self.commit or self.branch or ""

    @classmethod
    def declare(cls, name: str, url: str, path: str, branch_or_commit: str) -> External:
        """Build a declaration, picking ``commit`` for full-length hashes.

        An empty *branch_or_commit* falls back to the default branch.
        """
        branch_or_commit = branch_or_commit or DEFAULT_BRANCH
        if len(branch_or_commit) == COMMIT_HASH_LENGTH:
            return cls(name=name, url=url, path=path, commit=branch_or_commit)
        return cls(name=name, url=url, path=path, branch=branch_or_commit)


class ExternalsConfig(BaseModel):
    """Loaded configuration: declarations in file order plus parse warnings."""

    externals: dict[str, External] = Field(default_factory=dict)
    warnings: list[str] = Field(default_factory=list)

    def select(self, target: str = "all") -> list[External]:
        """Return every external for ``"all"``, or the single one named *target*."""
        if target == "all":
            return list(self.externals.values())
        if target not in self.externals:
            raise ConfigError(f"Unknown external: {target}")
        return [self.externals[target]]
