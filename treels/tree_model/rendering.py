"""Formatting helpers for listing and tree rows."""

from __future__ import annotations

from typing import TextIO

from ..ansi import pad_left, pad_right
from ..entry_model.types import EntryKind
from ..ui_theme import DEFAULT_THEME, UITheme
from .layout import MODIFIED_WIDTH, RenderRecord

LONG_HEADERS = ("Permissions", "Owner", "Size", "Last Modified", "Git", "Name")
PERMISSIONS_WIDTH = len(LONG_HEADERS[0])


def name_color_for(record: RenderRecord, theme: UITheme | None = None) -> str:
    """Return ANSI color used for the name column based on entry kind."""
    active_theme = theme or DEFAULT_THEME
    kind = record.node.entry.kind
    if kind is EntryKind.DIRECTORY:
        return active_theme.directory
    if kind is EntryKind.SYMLINK:
        return active_theme.symlink
    return active_theme.file


def _styled(text: str, color: str, reset: str) -> str:
    if not color or not text.strip():
        return text
    return f"{color}{text}{reset}"


def _name_cell(record: RenderRecord, theme: UITheme) -> str:
    branch = _styled(record.prefix, theme.branch, theme.reset)
    return branch + _styled(record.display_name, name_color_for(record, theme), theme.reset)


def _size_cell(record: RenderRecord, theme: UITheme, min_width: int = 0) -> str:
    width = max(record.widths.size, min_width)
    color = theme.partial if record.node.size_partial else theme.size
    return _styled(pad_left(record.size_label, width), color, theme.reset)


def _status_cell(record: RenderRecord, theme: UITheme) -> str:
    width = max(record.widths.status, len(LONG_HEADERS[4]))
    text = pad_right(record.status_code, width)
    return _styled(text, theme.status_color(record.node.git_status), theme.reset)


def format_short_row(
    record: RenderRecord,
    *,
    show_git: bool = False,
    show_size: bool = False,
    theme: UITheme | None = None,
) -> str:
    """Render one tree or plain-listing row: ``[status] [size] name``."""
    active_theme = theme or DEFAULT_THEME
    cells: list[str] = []
    if show_git:
        cells.append(_styled(record.status_code, active_theme.status_color(record.node.git_status), active_theme.reset))
    if show_size:
        cells.append(_size_cell(record, active_theme))
    cells.append(_name_cell(record, active_theme))
    return " ".join(cells)


def format_long_row(
    record: RenderRecord,
    *,
    show_git: bool = False,
    theme: UITheme | None = None,
) -> str:
    """Render one ``permissions owner size modified [git] name`` row."""
    active_theme = theme or DEFAULT_THEME
    reset = active_theme.reset
    owner_width = max(record.widths.owner, len(LONG_HEADERS[1]))
    cells = [
        _styled(pad_right(record.permissions, PERMISSIONS_WIDTH), active_theme.permissions, reset),
        _styled(pad_right(record.owner, owner_width), active_theme.owner, reset),
        _size_cell(record, active_theme, len(LONG_HEADERS[2])),
        _styled(pad_right(record.modified, MODIFIED_WIDTH), active_theme.modified, reset),
    ]
    if show_git:
        cells.append(_status_cell(record, active_theme))
    cells.append(_name_cell(record, active_theme))
    return " ".join(cells)


def format_long_header(
    records: list[RenderRecord],
    *,
    show_git: bool = False,
    theme: UITheme | None = None,
) -> str:
    """Return the column header line matching ``format_long_row`` widths."""
    active_theme = theme or DEFAULT_THEME
    widths = records[0].widths if records else None
    owner_width = max(widths.owner if widths else 0, len(LONG_HEADERS[1]))
    size_width = max(widths.size if widths else 0, len(LONG_HEADERS[2]))
    status_width = max(widths.status if widths else 0, len(LONG_HEADERS[4]))
    cells = [
        pad_right(LONG_HEADERS[0], PERMISSIONS_WIDTH),
        pad_right(LONG_HEADERS[1], owner_width),
        pad_left(LONG_HEADERS[2], size_width),
        pad_right(LONG_HEADERS[3], MODIFIED_WIDTH),
    ]
    if show_git:
        cells.append(pad_right(LONG_HEADERS[4], status_width))
    cells.append(LONG_HEADERS[5])
    return " ".join(_styled(cell, active_theme.header, active_theme.reset) for cell in cells)


def render_lines(
    records: list[RenderRecord],
    *,
    long: bool = False,
    show_git: bool = False,
    show_size: bool = False,
    theme: UITheme | None = None,
) -> list[str]:
    """Render every record, with a header line first in long mode."""
    if long:
        lines = [format_long_header(records, show_git=show_git, theme=theme)] if records else []
        lines.extend(format_long_row(record, show_git=show_git, theme=theme) for record in records)
        return lines
    return [
        format_short_row(record, show_git=show_git, show_size=show_size, theme=theme)
        for record in records
    ]


def write_records(
    records: list[RenderRecord],
    stream: TextIO,
    *,
    long: bool = False,
    show_git: bool = False,
    show_size: bool = False,
    theme: UITheme | None = None,
) -> None:
    for line in render_lines(records, long=long, show_git=show_git, show_size=show_size, theme=theme):
        stream.write(line + "\n")


__all__ = [
    "LONG_HEADERS",
    "name_color_for",
    "format_short_row",
    "format_long_row",
    "format_long_header",
    "render_lines",
    "write_records",
]
