"""Parse `chezmoi doctor` output into rows."""

import re
from dataclasses import dataclass, field
from typing import List

HEADER_TOKEN = "RESULT"

_ROW_RE = re.compile(r"^(\S+)\s+(\S+)\s+(.*)")

SEVERITIES = {
    "ok": "ok",
    "error": "error",
    "err": "error",
    "warning": "warning",
    "warn": "warning",
}


@dataclass(frozen=True)
class DoctorRow:
    result: str
    check: str
    message: str


def parse_doctor_output(text: str) -> List[DoctorRow]:
    """Parse doctor output into rows, preserving source order.

    The header line and any line without a result, a check and a message
    are dropped. Never raises.
    """
    rows = []
    for line in (text or "").split("\n"):
        if not line:
            continue
        if line.startswith(HEADER_TOKEN):
            continue
        match = _ROW_RE.match(line)
        if match:
            rows.append(
                DoctorRow(
                    result=match.group(1),
                    check=match.group(2),
                    message=match.group(3),
                )
            )
    return rows


def severity(result: str) -> str:
    """Map a doctor result word to ok, warning, error or info."""
    return SEVERITIES.get(result, "info")


@dataclass
class DoctorReport:
    """Parsed doctor output plus the raw text it came from."""

    raw: str = ""
    rows: List[DoctorRow] = field(default_factory=list)

    @classmethod
    def from_output(cls, output) -> "DoctorReport":
        text = output.stdout or output.stderr
        return cls(raw=text, rows=parse_doctor_output(text))

    @property
    def show_raw(self) -> bool:
        """True when nothing parsed but there is text to show instead."""
        return not self.rows and bool(self.raw)

    @property
    def counts(self) -> dict:
        totals = {"ok": 0, "warning": 0, "error": 0, "info": 0}
        for row in self.rows:
            totals[severity(row.result)] += 1
        return totals
