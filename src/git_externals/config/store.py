"""``.gitexternals`` config store, read and written through ``git config --file``."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from pydantic import ValidationError

from git_externals.config import ignore
from git_externals.config.schema import DEFAULT_BRANCH, External, ExternalsConfig, Settings
from git_externals.engine.errors import ProcessError

if TYPE_CHECKING:
    from pathlib import Path

    from git_externals.engine.process import ProcessRunner

logger = logging.getLogger(__name__)

SECTION = "external"
_FIELDS = frozenset({"url", "path", "branch", "commit"})


def parse_listing(text: str) -> ExternalsConfig:
    """Group ``external.<name>.<key>=<value>`` lines into declarations.

    Key order within and across sections is irrelevant; sections keep the
    order in which they first appear. Lines that cannot be interpreted are
    reported in ``warnings`` rather than raising.
    """
    fields: dict[str, dict[str, str]] = {}
    warnings: list[str] = []

    for lineno, raw in enumerate(text.splitlines(), start=1):
        line = raw.rstrip()
        if not line.strip():
            continue
        key, sep, value = line.partition("=")
        if not sep:
            warnings.append(f"line {lineno}: expected 'key = value', got {line!r}")
            continue

        prefix, _, subkey = key.strip().rpartition(".")
        section, _, name = prefix.partition(".")
        if section.lower() != SECTION or not name:
            warnings.append(f"line {lineno}: key {key.strip()!r} is not an external setting")
            continue
        subkey = subkey.lower()
        if subkey not in _FIELDS:
            warnings.append(f"line {lineno}: unknown key {subkey!r} for external {name!r}")
            continue

        fields.setdefault(name, {})[subkey] = value.strip()

    externals: dict[str, External] = {}
    for name, values in fields.items():
        if not values.get("url"):
            warnings.append(f"external {name!r} has no url; ignored")
            continue
        values.setdefault("path", name)
        try:
            externals[name] = External(name=name, **values)
        except ValidationError as exc:
            warnings.append(f"external {name!r} is invalid: {exc}")

    return ExternalsConfig(externals=externals, warnings=warnings)


class ConfigStore:
    """Owns the on-disk list of external declarations."""

    def __init__(self, root: Path, runner: ProcessRunner, settings: Settings | None = None) -> None:
        settings = settings or Settings()
        self.root = root
        self.runner = runner
        self.path = root / settings.config_file
        self.ignore_path = root / settings.ignore_file

    def load(self) -> ExternalsConfig:
        """Read all declarations. A missing file yields an empty config."""
        if not self.path.is_file():
            logger.debug("No config file at %s", self.path)
            return ExternalsConfig()

        result = self.runner.git("config", "--file", str(self.path), "--list", cwd=self.root)
        if not result.ok and result.returncode != 1:
            # Exit code 1 means "no keys" for an empty file.
            raise ProcessError(result.args, result.returncode, result.stderr)

        config = parse_listing(result.stdout)
        for w in config.warnings:
            logger.warning("%s: %s", self.path.name, w)
        logger.info("Loaded %d external(s) from %s", len(config.externals), self.path)
        return config

    def _set(self, name: str, key: str, value: str) -> None:
        self.runner.git(
            "config", "--file", str(self.path), f"{SECTION}.{name}.{key}", value,
            cwd=self.root,
            check=True,
        )

    def _remove_section(self, name: str) -> bool:
        if not self.path.is_file():
            return False
        result = self.runner.git(
            "config", "--file", str(self.path), "--remove-section", f"{SECTION}.{name}",
            cwd=self.root,
        )
        return result.ok

    def add(
        self, name: str, url: str, path: str, branch_or_commit: str = DEFAULT_BRANCH
    ) -> External:
        """Declare (or redeclare) an external and ignore its path."""
        external = External.declare(name, url, path, branch_or_commit)

        if self._remove_section(name):
            logger.info("Replacing existing declaration for %s", name)
        self._set(name, "url", external.url)
        self._set(name, "path", external.path)
        if external.commit is not None:
            self._set(name, "commit", external.commit)
        else:
            self._set(name, "branch", external.target)

        ignore.append_entry(self.ignore_path, external.path)
        logger.info("Added external %s (%s)", name, external.target)
        return external

    def remove(self, name: str) -> bool:
        """Delete a declaration. Returns False when *name* is not declared."""
        existing = self.load().externals.get(name)
        if not self._remove_section(name):
            return False

        if not self.path.read_text(encoding="utf-8").strip():
            logger.debug("Config file %s is empty; deleting it", self.path)
            self.path.unlink()

        ignore.remove_entry(self.ignore_path, existing.path if existing else name)
        logger.info("Removed external %s", name)
        return True
