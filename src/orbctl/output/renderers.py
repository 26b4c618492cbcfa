"""Operation-specific Rich renderers for ServiceResult.

Each renderer writes to a Rich Console (backed by StringIO).  The caller
extracts the rendered text via ``get_output(console)``.

Renderers are dispatched by ``result.op`` in :func:`render_result`.
Unknown ops fall through to a generic key-value renderer.
"""

from __future__ import annotations

import json as _json
from typing import TYPE_CHECKING, Any

from rich.markup import escape
from rich.panel import Panel
from rich.syntax import Syntax
from rich.table import Table
from rich.text import Text

from orbctl.output.console import create_console, get_output, style_for_change

if TYPE_CHECKING:
    from rich.console import Console

    from orbctl.services.result import ServiceResult


# ── Public API ────────────────────────────────────────────────────────


def render_result(result: ServiceResult, *, verbose: bool = False) -> str:
    """Render a ServiceResult to a styled string via Rich.

    Returns plain text (no ANSI) when Rich detects no terminal,
    which is the case inside Click's CliRunner and piped output.
    """
    console = create_console()

    if result.ok:
        renderer = _OP_RENDERERS.get(result.op, _render_generic)
        renderer(result, console, verbose=verbose)
    else:
        _render_error(result, console, verbose=verbose)

    return get_output(console).rstrip("\n")


def render_quiet(result: ServiceResult) -> str:
    """Render minimal output for ``--quiet`` mode.

    Version listings print one version per line, migrations print the
    migrated config, validation prints one error per line.
    """
    if not result.ok:
        msg = result.error.message if result.error else "Unknown error"
        return f"ERROR: {result.op} — {msg}"

    d = result.data
    if result.op == "list_versions":
        return "\n".join(d.get("versions", []))
    if result.op in ("plan_migration", "migrate_config") and d.get("config") is not None:
        return str(d["config"]).rstrip("\n")
    if result.op == "validate_config":
        errors = d.get("errors", [])
        if errors:
            return "\n".join(f"{e['location']}: {e['message']}" for e in errors)
    return f"OK: {result.op}"


# ── Helpers ───────────────────────────────────────────────────────────


def _status_line(console: Console, result: ServiceResult) -> None:
    """Print the OK/ERROR status line."""
    label = Text("OK", style="orb.ok")
    op = Text(f"  {result.op}", style="orb.op")
    console.print(label, op, sep="")


def _field(console: Console, key: str, value: Any) -> None:
    """Print a single indented key-value field."""
    k = Text(f"  {key}: ", style="orb.key")
    if key in ("version", "latest", "from_version", "to_version"):
        v = Text(str(value), style="orb.version")
    elif key in ("path", "written"):
        v = Text(str(value), style="orb.path")
    else:
        v = Text(str(value))
    console.print(k, v, sep="")


def _render_meta(console: Console, result: ServiceResult) -> None:
    """Print the meta block (verbose only)."""
    if not result.meta:
        return
    console.print()
    console.print(Text("  meta:", style="dim"))
    for k, v in result.meta.items():
        console.print(Text(f"    {k}: {v}"))


def _render_issues(console: Console, issues: list[dict[str, Any]], severity: str) -> None:
    style = "orb.error" if severity == "error" else "orb.warning"
    for issue in issues:
        console.print(
            f"  [{style}]{severity}[/{style}] "
            f"{escape(issue['location'])}: {escape(issue['message'])}"
        )


# ── Error renderer ────────────────────────────────────────────────────


def _render_error(result: ServiceResult, console: Console, *, verbose: bool = False) -> None:
    err = result.error
    msg = err.message if err else "Unknown error"
    label = Text("ERROR", style="orb.error")
    op = Text(f"  {result.op}", style="orb.op")
    dash = Text(" — ")
    code = Text(f" [{err.code}]", style="dim") if err else Text("")
    console.print(label, op, dash, Text(msg), code, sep="")

    if verbose and err and err.detail:
        console.print(Text("  detail:", style="dim"))
        for k, v in err.detail.items():
            console.print(Text(f"    {k}: {v}"))


# ── Version renderers ─────────────────────────────────────────────────


def _render_versions(result: ServiceResult, console: Console, *, verbose: bool = False) -> None:
    """Render list_versions as a one-column table plus gaps in verbose mode."""
    d = result.data
    versions = d.get("versions", [])
    if not versions:
        console.print("[orb.warning]No versions stored.[/orb.warning]")
        return
    table = Table(show_header=True, show_lines=False, pad_edge=False, expand=False)
    table.add_column("Version", style="orb.version", no_wrap=True)
    for version in versions:
        table.add_row(version)
    console.print(table)
    console.print(f"\n{d.get('count', len(versions))} versions, latest {d.get('latest')}")
    if verbose and d.get("gaps"):
        console.print(Text(f"gaps: {', '.join(d['gaps'])}", style="dim"))


def _render_stats(result: ServiceResult, console: Console, *, verbose: bool = False) -> None:
    """Render store_stats."""
    _status_line(console, result)
    d = result.data
    for key in ("versions", "bases", "deltas", "latest", "policy", "delta_bytes"):
        if key in d:
            _field(console, key, d[key])
    if verbose and d.get("base_versions"):
        _field(console, "base_versions", ", ".join(d["base_versions"]))


def _render_definition(result: ServiceResult, console: Console, *, verbose: bool = False) -> None:
    """Render get_version as one table per collection."""
    d = result.data
    definition = d.get("definition", {})
    title = str(d.get("version", "?"))
    description = definition.get("description")
    if description:
        title += f" — {description}"
    summary = Text(_summary_text(d.get("summary", {})))
    console.print(Panel(summary, title=Text(title), expand=False))

    for collection in ("commands", "jobs", "executors"):
        entities = definition.get(collection)
        if not entities:
            continue
        table = Table(title=collection, show_header=True, pad_edge=False, expand=False)
        table.add_column("Name", style="bold", no_wrap=True)
        table.add_column("Parameters")
        if verbose:
            table.add_column("Description", style="dim")
        for name, entity in entities.items():
            params = ", ".join(
                f"{p['name']}{'*' if p.get('required') else ''}:{p.get('type', 'string')}"
                for p in entity.get("parameters", [])
            )
            row = [name, params]
            if verbose:
                row.append(entity.get("description") or "")
            table.add_row(*row)
        console.print(table)


def _summary_text(summary: dict[str, int]) -> str:
    return ", ".join(f"{count} {name}" for name, count in summary.items())


def _render_diff(result: ServiceResult, console: Console, *, verbose: bool = False) -> None:
    """Render diff_versions grouped by collection."""
    d = result.data
    header = f"{d.get('from_version')} → {d.get('to_version')}"
    if d.get("empty"):
        console.print(f"[orb.ok]OK[/orb.ok]  {escape(header)}: no structural changes.")
        return
    console.print(Text(header, style="bold"))
    delta = d.get("delta", {})
    for collection in ("commands", "jobs", "executors"):
        cdelta = delta.get(collection) or {}
        lines: list[str] = []
        for name in cdelta.get("added", {}):
            lines.append(f"  [orb.added]+ {escape(name)}[/orb.added]")
        for name in cdelta.get("removed", []):
            lines.append(f"  [orb.removed]- {escape(name)}[/orb.removed]")
        for name, change in cdelta.get("modified", {}).items():
            lines.append(f"  [orb.modified]~ {escape(name)}[/orb.modified]")
            lines.extend(_parameter_lines(change, verbose=verbose))
        if lines:
            console.print(f"\n[bold]{collection}[/bold]")
            for line in lines:
                console.print(line)
    if delta.get("fields"):
        console.print(f"\n[bold]orb[/bold]: {', '.join(delta['fields'])} changed")


def _parameter_lines(change: dict[str, Any], *, verbose: bool) -> list[str]:
    params = change.get("parameters") or {}
    lines: list[str] = []
    for param in params.get("added", []):
        lines.append(f"      [orb.added]+ {escape(param['name'])}[/orb.added]")
    for name in params.get("removed", []):
        lines.append(f"      [orb.removed]- {escape(name)}[/orb.removed]")
    for name, pchange in params.get("modified", {}).items():
        fields = ", ".join(pchange.get("fields", {}))
        lines.append(f"      [orb.modified]~ {escape(name)}[/orb.modified] ({fields})")
    if verbose and change.get("fields"):
        lines.append(f"      fields: {', '.join(change['fields'])}")
    return lines


def _render_check_orb(result: ServiceResult, console: Console, *, verbose: bool = False) -> None:
    """Render check_orb counts."""
    _status_line(console, result)
    d = result.data
    _field(console, "path", d.get("path"))
    for collection in ("commands", "jobs", "executors"):
        _field(console, collection, d.get(collection, 0))
    if verbose:
        for collection, names in d.get("names", {}).items():
            if names:
                console.print(Text(f"    {collection}: {', '.join(names)}", style="dim"))


# ── Migration / validation renderers ──────────────────────────────────


def _render_validation(result: ServiceResult, console: Console, *, verbose: bool = False) -> None:
    """Render validate_config findings."""
    d = result.data
    errors = d.get("errors", [])
    warnings = d.get("warnings", [])
    version = escape(str(d.get("version")))
    if not errors and not warnings:
        console.print(
            f"[orb.ok]OK[/orb.ok]  {d.get('checked', 0)} references valid against {version}."
        )
        return
    _render_issues(console, errors, "error")
    _render_issues(console, warnings, "warning")
    console.print(f"\n{len(errors)} errors, {len(warnings)} warnings against {version}")


def _render_plan(result: ServiceResult, console: Console, *, verbose: bool = False) -> None:
    """Render plan_migration / migrate_config: edits, notes, validation, config."""
    d = result.data
    state = str(d.get("state", ""))
    state_style = "orb.ok" if state == "complete" else "orb.warning"
    console.print(
        Text(f"{d.get('from_version')} → {d.get('to_version')}  ", style="bold"),
        Text(state, style=state_style),
        sep="",
    )
    if verbose and d.get("gaps"):
        console.print(Text(f"  gaps: {', '.join(d['gaps'])}", style="dim"))

    edits = d.get("edits", [])
    if edits:
        table = Table(show_header=True, show_lines=False, pad_edge=False, expand=False)
        table.add_column("Rule", justify="right")
        table.add_column("Gap", style="dim")
        table.add_column("Action")
        table.add_column("Location")
        table.add_column("Detail")
        for edit in edits:
            action = str(edit["action"])
            table.add_row(
                str(edit["rule_id"]),
                edit["gap"],
                Text(action, style=style_for_change(action)),
                Text(edit["location"]),
                Text(edit["detail"]),
            )
        console.print(table)
    else:
        console.print("  no edits")

    if verbose:
        for note in d.get("not_applicable", []):
            console.print(Text(f"  rule {note['rule_id']} ({note['gap']}): {note['message']}"))

    validation = d.get("validation") or {}
    _render_issues(console, validation.get("errors", []), "error")

    if d.get("written"):
        _field(console, "written", d["written"])
    elif verbose and d.get("config"):
        console.print()
        console.print(Syntax(str(d["config"]), "yaml", background_color="default"))


# ── Rule renderers ────────────────────────────────────────────────────


def _render_rules(result: ServiceResult, console: Console, *, verbose: bool = False) -> None:
    """Render list_rules grouped by gap."""
    d = result.data
    rule_sets = d.get("rule_sets", [])
    if not rule_sets:
        console.print("[orb.warning]No migration rules loaded.[/orb.warning]")
    for rule_set in rule_sets:
        console.print(f"\n[bold]{escape(rule_set['gap'])}[/bold]")
        for rule in rule_set.get("rules", []):
            console.print(Text(f"  {rule['id']:>3}  {rule['description']}"))
            if verbose and rule.get("rationale"):
                console.print(Text(f"       {rule['rationale']}", style="dim"))
    uncovered = d.get("uncovered_gaps", [])
    if uncovered:
        console.print(Text(f"\nGaps without rules: {', '.join(uncovered)}", style="dim"))


# ── Generic fallback ──────────────────────────────────────────────────


def _render_generic(result: ServiceResult, console: Console, *, verbose: bool = False) -> None:
    """Fallback renderer: status line + all data as key-value pairs."""
    _status_line(console, result)
    for key, value in result.data.items():
        if isinstance(value, (dict, list)):
            _field(console, key, _json.dumps(value, separators=(",", ":"), default=str))
        else:
            _field(console, key, value)
    if verbose:
        _render_meta(console, result)


# ── Dispatch table ────────────────────────────────────────────────────

_OP_RENDERERS: dict[str, Any] = {
    # Versions
    "list_versions": _render_versions,
    "store_stats": _render_stats,
    "get_version": _render_definition,
    "diff_versions": _render_diff,
    "check_orb": _render_check_orb,
    # Migration
    "plan_migration": _render_plan,
    "migrate_config": _render_plan,
    "validate_config": _render_validation,
    # Rules
    "list_rules": _render_rules,
    "check_rules": _render_generic,
}
