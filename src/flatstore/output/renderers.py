"""Operation-specific Rich renderers for ServiceResult.

Renderers are dispatched by ``result.op`` in :func:`render_result`.
Unknown ops fall through to a generic key-value renderer.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from rich.table import Table
from rich.text import Text

from flatstore.output.console import create_console, get_output, style_for_status

if TYPE_CHECKING:
    from rich.console import Console

    from flatstore.services.result import ServiceResult


# ── Public API ────────────────────────────────────────────────────────


def render_result(result: ServiceResult, *, verbose: bool = False) -> str:
    """Render a ServiceResult to a styled string via Rich."""
    console = create_console()

    if result.ok:
        renderer = _OP_RENDERERS.get(result.op)
        if renderer is None:
            # Every action-backed command returns a state summary.
            renderer = _render_state if "view" in result.data else _render_generic
        renderer(result, console, verbose=verbose)
    else:
        _render_error(result, console, verbose=verbose)

    return get_output(console).rstrip("\n")


def render_quiet(result: ServiceResult) -> str:
    """Render minimal output for ``--quiet`` mode."""
    if not result.ok:
        msg = result.error.message if result.error else "Unknown error"
        return f"ERROR: {result.op}: {msg}"
    toast = result.data.get("toast")
    return f"OK: {result.op}: {toast}" if toast else f"OK: {result.op}"


# ── Helpers ───────────────────────────────────────────────────────────


def _status_line(console: Console, result: ServiceResult) -> None:
    label = Text("OK", style="flat.ok")
    op = Text(f"  {result.op}", style="flat.op")
    toast = result.data.get("toast")
    if toast:
        console.print(label, op, Text(f"  {toast}"), end="")
    else:
        console.print(label, op, end="")
    console.print()


def _field(console: Console, key: str, value: Any) -> None:
    k = Text(f"  {key}: ", style="flat.key")
    if key == "id" or key.endswith("_id"):
        v = Text(str(value), style="flat.id")
    elif key in {"name", "title"}:
        v = Text(str(value), style="flat.title")
    else:
        v = Text(str(value))
    console.print(k, v, end="")
    console.print()


def _render_meta(console: Console, result: ServiceResult) -> None:
    if not result.meta:
        return
    console.print()
    console.print(Text("  meta:", style="dim"))
    for k, v in result.meta.items():
        console.print(f"    {k}: {v}")


def _render_warnings(console: Console, result: ServiceResult) -> None:
    for warning in result.warnings:
        console.print(Text("  WARNING ", style="flat.warning"), warning)


def _members_table(members: list[dict[str, Any]]) -> Table:
    table = Table(show_header=True, show_lines=False, pad_edge=False, expand=False)
    table.add_column("ID", style="flat.id", no_wrap=True)
    table.add_column("Name", style="flat.title")
    table.add_column("Status")
    table.add_column("Role")
    for member in members:
        status = str(member.get("status", ""))
        table.add_row(
            str(member.get("id", "")),
            str(member.get("name", "")),
            Text(status, style=style_for_status(status)),
            Text("admin", style="flat.admin") if member.get("admin") else "",
        )
    return table


def _chores_table(chores: list[dict[str, Any]]) -> Table:
    table = Table(show_header=True, show_lines=False, pad_edge=False, expand=False)
    table.add_column("ID", style="flat.id", no_wrap=True)
    table.add_column("Title", style="flat.title")
    table.add_column("State")
    table.add_column("Assignee")
    table.add_column("Due")
    for chore in chores:
        state = str(chore.get("state", ""))
        table.add_row(
            str(chore.get("id", "")),
            str(chore.get("title", "")),
            Text(state, style="flat.ended" if state == "ENDED" else ""),
            str(chore.get("assignee_id") or "-"),
            str(chore.get("due_at") or "-"),
        )
    return table


# ── Error renderer ────────────────────────────────────────────────────


def _render_error(result: ServiceResult, console: Console, *, verbose: bool = False) -> None:
    err = result.error
    msg = err.message if err else "Unknown error"
    label = Text("ERROR", style="flat.error")
    op = Text(f"  {result.op}", style="flat.op")
    code = Text(f"  [{err.code}]" if err else "", style="flat.key")
    console.print(label, op, code, Text(f"  {msg}"), end="")
    console.print()
    if verbose and err and err.detail:
        for k, v in err.detail.items():
            _field(console, k, v)
    if verbose:
        _render_meta(console, result)


# ── State renderers ───────────────────────────────────────────────────


def _render_state(result: ServiceResult, console: Console, *, verbose: bool = False) -> None:
    """Session, house, members and chores as seen by the current user."""
    _status_line(console, result)
    _render_warnings(console, result)
    data = result.data

    _field(console, "view", data.get("view", ""))
    me = data.get("current_user")
    if me is None:
        console.print(Text("  not logged in", style="dim"))
    else:
        _field(console, "user", f"{me['name']} <{me['email']}> ({me['id']})")
        status = me.get("status", "")
        until = f" until {me['dnd_until']}" if me.get("dnd_until") else ""
        console.print(
            Text("  status: ", style="flat.key"),
            Text(f"{status}{until}", style=style_for_status(status)),
        )

    house = data.get("house")
    if house is not None:
        console.print()
        _field(console, "house", f"{house['name']} ({house['id']})")
        _field(console, "invite_code", house.get("invite_code", ""))
        _field(console, "currency", house.get("currency", ""))
        members = data.get("members") or []
        if members:
            console.print(_members_table(members))
        chores = data.get("chores") or []
        if chores:
            console.print()
            console.print(_chores_table(chores))

    for key in ("seeded", "path", "received", "expired"):
        if key in data:
            value = data[key]
            _field(console, key, ", ".join(value) if isinstance(value, list) else value)

    if verbose:
        counts = data.get("counts") or {}
        if counts:
            console.print()
            console.print(
                Text("  counts: ", style="flat.key"),
                ", ".join(f"{k}={v}" for k, v in counts.items()),
            )
        _render_meta(console, result)


def _render_generic(result: ServiceResult, console: Console, *, verbose: bool = False) -> None:
    _status_line(console, result)
    _render_warnings(console, result)
    for key, value in result.data.items():
        _field(console, key, value)
    if verbose:
        _render_meta(console, result)


_OP_RENDERERS: dict[str, Any] = {
    "init": _render_state,
    "show": _render_state,
    "dispatch": _render_state,
    "sync": _render_state,
    "expire_dnd": _render_state,
}
