"""Status and operation output rendering."""

from __future__ import annotations

from typing import TYPE_CHECKING, NamedTuple

import typer

from git_externals.engine.types import Outcome, Status

if TYPE_CHECKING:
    from collections.abc import Callable, Iterable

    from git_externals.config.schema import External
    from git_externals.engine.types import ExternalStatus, OperationResult, StatusReport


class _Style(NamedTuple):
    color: str
    label: str


_STATUS_STYLES: dict[str, _Style] = {
    "ok": _Style("green", "ok"),
    "broken": _Style("red", "broken"),
    "uninitialized": _Style("yellow", "uninitialized"),
}

_OUTCOME_STYLES: dict[str, _Style] = {
    "done": _Style("green", "done"),
    "skipped": _Style("bright_black", "skipped"),
    "failed": _Style("red", "failed"),
}

_LABEL_WIDTH = max(len(s.label) for s in _STATUS_STYLES.values())


def styler(color: bool) -> Callable[..., str]:
    """Return ``typer.style`` when *color* is True, otherwise a passthrough."""
    if color:
        return typer.style
    return lambda text, **_kw: text


# ---------------------------------------------------------------------------
# Status
# ---------------------------------------------------------------------------


def _annotations(entry: ExternalStatus) -> list[str]:
    notes = []
    if entry.dirty:
        notes.append("[dirty]")
    if entry.untracked:
        notes.append("[untracked]")
    if entry.diverged:
        notes.append(f"[ahead {entry.ahead or 0}, behind {entry.behind or 0}]")
    return notes


def format_status_entry(entry: ExternalStatus, *, color: bool = True) -> str:
    """Render one classified external as a single line."""
    style = styler(color)
    s = _STATUS_STYLES[entry.status.value]
    label = style(s.label.ljust(_LABEL_WIDTH), fg=s.color, bold=True)

    if entry.status == Status.BROKEN:
        detail = f"{entry.name}: {entry.reason}"
        if entry.actual is not None or entry.expected is not None:
            detail += f" (actual: {entry.actual or '-'}, expected: {entry.expected or '-'})"
        return f"  {label}  {detail}"

    parts = [entry.name, *_annotations(entry)]
    return f"  {label}  {' '.join(parts)}"


def format_status_summary(summary: dict[str, int], *, color: bool = True) -> str:
    """Render ``Status: 2 ok, 1 broken, 0 uninitialized.``"""
    style = styler(color)
    parts = []
    for status in Status:
        n = summary.get(status.value, 0)
        text = f"{n} {status.value}"
        parts.append(style(text, fg=_STATUS_STYLES[status.value].color) if n and color else text)
    return f"Status: {', '.join(parts)}."


def format_status(report: StatusReport, *, color: bool = True) -> str:
    """Render the full report: warnings, one line per external, summary."""
    style = styler(color)
    lines = [style(f"warning: {w}", fg="yellow") for w in report.warnings]
    if not report.entries:
        lines.append("No externals declared.")
        return "\n".join(lines)
    lines.extend(format_status_entry(e, color=color) for e in report.entries)
    lines.append("")
    lines.append(format_status_summary(report.summary(), color=color))
    return "\n".join(lines)


# ---------------------------------------------------------------------------
# Operations
# ---------------------------------------------------------------------------


def format_result(result: OperationResult, *, color: bool = True) -> str:
    style = styler(color)
    s = _OUTCOME_STYLES[result.outcome.value]
    line = f"  {result.name}: {style(s.label, fg=s.color)}"
    if result.message:
        line += f" ({result.message})"
    return line


def results_summary(results: Iterable[OperationResult]) -> dict[str, int]:
    """Count results by outcome."""
    counts = {o.value: 0 for o in Outcome}
    for r in results:
        counts[r.outcome.value] += 1
    return counts


def format_results_summary(action: str, summary: dict[str, int], *, color: bool = True) -> str:
    """Render ``Init: 1 done, 2 skipped, 0 failed.``"""
    style = styler(color)
    parts = []
    for outcome in Outcome:
        n = summary.get(outcome.value, 0)
        text = f"{n} {outcome.value}"
        fg = _OUTCOME_STYLES[outcome.value].color
        parts.append(style(text, fg=fg) if n and color else text)
    return f"{action.capitalize()}: {', '.join(parts)}."


def format_command_output(result: OperationResult, *, color: bool = True) -> str:
    """Render the captured output of ``cmd`` under a header for the external."""
    style = styler(color)
    header = style(f"== {result.name} ==", bold=True)
    body = result.output.rstrip("\n")
    if result.failed:
        body = "\n".join(filter(None, [body, style(f"({result.message})", fg="red")]))
    return f"{header}\n{body}" if body else header


# ---------------------------------------------------------------------------
# Declarations
# ---------------------------------------------------------------------------


def format_external(external: External) -> str:
    if external.ambiguous:
        kind = "branch+commit"
    elif external.commit is not None:
        kind = "commit"
    else:
        kind = "branch"
    lines = [
        f"  {external.name}",
        f"    url:    {external.url}",
        f"    path:   {external.path}",
        f"    {kind}: {external.target}",
    ]
    return "\n".join(lines)


def format_externals(externals: Iterable[External]) -> str:
    blocks = [format_external(e) for e in externals]
    if not blocks:
        return "No externals declared."
    return "\n".join(blocks)
