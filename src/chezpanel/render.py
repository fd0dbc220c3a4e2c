"""Render unified diff text for the terminal with rich."""

import io
import re
from dataclasses import dataclass
from enum import Enum
from typing import List, Optional, Protocol

from rich.console import Console
from rich.syntax import Syntax
from rich.table import Table
from rich.text import Text

_HUNK_HEADER_RE = re.compile(r"^@@ -(\d+)(?:,\d+)? \+(\d+)(?:,\d+)? @@")
_NO_NEWLINE = "\\ No newline at end of file"


class DiffLayout(Enum):
    SIDE_BY_SIDE = "side-by-side"
    UNIFIED = "unified"


class DiffRenderer(Protocol):
    def render(self, raw: str, layout: DiffLayout) -> str: ...


@dataclass(frozen=True)
class SideBySideRow:
    """One row of a side-by-side diff.

    kind is "header", "hunk", "context" or "change".
    """

    kind: str
    old_no: Optional[int] = None
    old: str = ""
    new_no: Optional[int] = None
    new: str = ""


def looks_like_diff(raw: str) -> bool:
    return any(
        line.startswith(("diff ", "--- ", "@@ "))
        for line in raw.splitlines()
    )


def pair_rows(raw: str) -> List[SideBySideRow]:
    """Split a unified diff into side-by-side rows.

    Runs of removed lines are paired with the run of added lines that
    follows them; the shorter side is padded with blanks.
    """
    rows: List[SideBySideRow] = []
    removed: List[tuple] = []
    added: List[tuple] = []
    old_no = new_no = 0
    in_hunk = False

    def flush():
        for i in range(max(len(removed), len(added))):
            o_no, o_text = removed[i] if i < len(removed) else (None, "")
            n_no, n_text = added[i] if i < len(added) else (None, "")
            rows.append(SideBySideRow("change", o_no, o_text, n_no, n_text))
        removed.clear()
        added.clear()

    for line in raw.splitlines():
        hunk = _HUNK_HEADER_RE.match(line)
        if hunk:
            flush()
            old_no, new_no = int(hunk.group(1)), int(hunk.group(2))
            in_hunk = True
            rows.append(SideBySideRow("hunk", old=line, new=line))
            continue

        if line.startswith("diff --git "):
            flush()
            in_hunk = False

        if not in_hunk:
            if line:
                rows.append(SideBySideRow("header", old=line, new=line))
            continue

        if line == _NO_NEWLINE:
            continue
        if line.startswith("-"):
            removed.append((old_no, line[1:]))
            old_no += 1
        elif line.startswith("+"):
            added.append((new_no, line[1:]))
            new_no += 1
        else:
            flush()
            text = line[1:] if line.startswith(" ") else line
            rows.append(SideBySideRow("context", old_no, text, new_no, text))
            old_no += 1
            new_no += 1

    flush()
    return rows


class RichDiffRenderer:
    """Renders diffs to an ANSI string using rich."""

    def __init__(self, width: Optional[int] = None, color: bool = True):
        self.width = width
        self.color = color

    def _console(self, buffer: io.StringIO) -> Console:
        return Console(
            file=buffer,
            force_terminal=self.color,
            color_system="standard" if self.color else None,
            no_color=not self.color,
            width=self.width,
            highlight=False,
        )

    def render(self, raw: str, layout: DiffLayout) -> str:
        buffer = io.StringIO()
        console = self._console(buffer)

        if not looks_like_diff(raw):
            console.print(Text(raw))
        elif layout is DiffLayout.UNIFIED:
            console.print(Syntax(raw, "diff", theme="ansi_dark"))
        else:
            console.print(self._side_by_side(raw))

        return buffer.getvalue()

    def _side_by_side(self, raw: str) -> Table:
        table = Table(
            show_header=False,
            show_edge=False,
            box=None,
            expand=True,
            padding=(0, 1),
        )
        table.add_column(justify="right", style="dim", no_wrap=True)
        table.add_column(ratio=1, overflow="fold")
        table.add_column(justify="right", style="dim", no_wrap=True)
        table.add_column(ratio=1, overflow="fold")

        for row in pair_rows(raw):
            if row.kind == "header":
                table.add_row("", Text(row.old, style="bold"), "", "")
            elif row.kind == "hunk":
                table.add_row("", Text(row.old, style="cyan"), "", "")
            elif row.kind == "context":
                table.add_row(
                    str(row.old_no),
                    Text(row.old),
                    str(row.new_no),
                    Text(row.new),
                )
            else:
                table.add_row(
                    "" if row.old_no is None else str(row.old_no),
                    Text(row.old, style="red"),
                    "" if row.new_no is None else str(row.new_no),
                    Text(row.new, style="green"),
                )
        return table
