"""Status reconciliation: declared externals vs. probed repository state."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Protocol

from git_externals.engine.errors import ConfigError, ExternalsError
from git_externals.engine.types import ExternalStatus, ProbedState, Status, StatusReport
from git_externals.engine.urls import is_relative, resolve_url

if TYPE_CHECKING:
    from collections.abc import Iterable
    from pathlib import Path

    from git_externals.config.schema import External

logger = logging.getLogger(__name__)

AMBIGUOUS = "ambiguous definition"
URL_MISMATCH = "URL mismatch"
UNEXPECTED_BRANCH = "unexpected branch"
UNEXPECTED_COMMIT = "unexpected commit"
PROBE_FAILED = "probe failed"


class Probe(Protocol):
    def exists(self, path: Path) -> bool: ...

    def observe(self, path: Path) -> ProbedState: ...


def _broken(
    external: External, reason: str, actual: str | None, expected: str | None
) -> ExternalStatus:
    return ExternalStatus(
        name=external.name,
        path=external.path,
        status=Status.BROKEN,
        reason=reason,
        actual=actual,
        expected=expected,
    )


def classify(
    external: External, state: ProbedState | None, *, expected_url: str | None = None
) -> ExternalStatus:
    """Classify one external. Pure: depends only on its arguments.

    *expected_url* overrides the declared URL when that one is relative and
    has been resolved against the host origin.
    """
    if external.ambiguous:
        return _broken(external, AMBIGUOUS, None, external.target)

    if state is None or not state.exists:
        return ExternalStatus(name=external.name, path=external.path, status=Status.UNINITIALIZED)

    expected_url = expected_url or external.url
    if state.remote_url != expected_url:
        return _broken(external, URL_MISMATCH, state.remote_url, expected_url)

    on_branch = external.branch is not None and external.branch == state.current_branch
    on_commit = external.commit is not None and external.commit == state.current_revision
    if on_branch or on_commit:
        return ExternalStatus(
            name=external.name,
            path=external.path,
            status=Status.OK,
            dirty=state.dirty,
            untracked=state.untracked,
            ahead=state.ahead,
            behind=state.behind,
        )

    if external.commit is not None:
        return _broken(external, UNEXPECTED_COMMIT, state.current_revision, external.commit)
    return _broken(external, UNEXPECTED_BRANCH, state.current_branch, external.branch)


def _expected_url(external: External, origin_url: str | None) -> str:
    if not is_relative(external.url):
        return external.url
    try:
        return resolve_url(external.url, origin_url)
    except ConfigError:
        logger.debug("Cannot resolve %s; comparing against it verbatim", external.url)
        return external.url


def reconcile(
    externals: Iterable[External],
    probe: Probe,
    root: Path,
    *,
    origin_url: str | None = None,
) -> StatusReport:
    """Classify every external, in configuration order.

    Ambiguous declarations are never probed and missing repositories are
    only checked for existence. An entry whose repository cannot be probed
    is reported as broken; the remaining entries are still classified.
    """
    entries: list[ExternalStatus] = []
    for external in externals:
        state: ProbedState | None = None
        if not external.ambiguous:
            path = root / external.path
            try:
                state = probe.observe(path) if probe.exists(path) else ProbedState(exists=False)
            except ExternalsError as exc:
                logger.warning("Cannot inspect %s: %s", external.name, exc)
                entries.append(_broken(external, f"{PROBE_FAILED}: {exc}", None, None))
                continue
        entry = classify(external, state, expected_url=_expected_url(external, origin_url))
        logger.debug("%s: %s %s", external.name, entry.status.value, entry.reason)
        entries.append(entry)
    return StatusReport(entries=entries)
