"""
Roll daily entries up into the plain-text weekly/monthly report body.

Daily entries carry explicit ``(project, text)`` lines. Older free-text
entries in the ``[Name (Code)] text`` form go through ``parse_line`` once, at
import time, via ``DailyEntry.from_text``, which keeps the lines it could not
parse in ``unparsed``.
"""
import re
from dataclasses import dataclass, field
from datetime import date
from typing import Dict, Iterable, List, NamedTuple, Optional

from worklog.services.periods import Period, period_days

LINE_PATTERN = re.compile(r"^\[(.*?) \((.*?)\)\] (.*)$")

PENDING = "pending"
NOT_AVAILABLE = "not_available"
GENERATED = "generated"


class EntryLine(NamedTuple):
    project_name: str
    project_code: str
    text: str


@dataclass
class DailyEntry:
    date: date
    lines: List[EntryLine] = field(default_factory=list)
    is_plan: bool = False
    unparsed: List[str] = field(default_factory=list)

    @classmethod
    def from_text(cls, day: date, text: str, is_plan: bool = False) -> "DailyEntry":
        entry = cls(date=day, is_plan=is_plan)
        for raw in (text or "").splitlines():
            if not raw.strip():
                continue
            parsed = parse_line(raw)
            if parsed is None:
                entry.unparsed.append(raw)
            else:
                entry.lines.append(parsed)
        return entry

    @classmethod
    def from_report(cls, report) -> "DailyEntry":
        """Build from a DailyReport row with its items and their projects loaded."""
        lines = [
            EntryLine(item.project.name, item.project.code or "", item.content)
            for item in report.items
        ]
        return cls(date=report.date, lines=lines, is_plan=report.is_plan)

    def to_text(self) -> str:
        return "\n".join(format_line(line) for line in self.lines)


@dataclass
class DayStatus:
    date: date
    has_report: bool
    is_plan: bool


def parse_line(line: str) -> Optional[EntryLine]:
    match = LINE_PATTERN.match(line)
    if not match:
        return None
    return EntryLine(match.group(1), match.group(2), match.group(3))


def format_line(line: EntryLine) -> str:
    return f"[{line.project_name} ({line.project_code})] {line.text}"


def aggregate(entries: Iterable[DailyEntry], period: Period) -> str:
    in_range = sorted(
        (entry for entry in entries if not entry.is_plan and period.contains(entry.date)),
        key=lambda entry: entry.date,
    )

    # dicts keep insertion order: first-seen project order
    groups: Dict[str, List[str]] = {}
    for entry in in_range:
        day = entry.date.isoformat()
        for line in entry.lines:
            groups.setdefault(line.project_name, []).append(f"- {day}: {line.text}")

    blocks = []
    for project_name, rows in groups.items():
        blocks.append("\n".join([project_name, *rows]) + "\n\n")
    return "".join(blocks).rstrip()


def daily_status(entries: Iterable[DailyEntry], period: Period) -> List[DayStatus]:
    done, planned = set(), set()
    for entry in entries:
        if period.contains(entry.date):
            (planned if entry.is_plan else done).add(entry.date)

    return [
        DayStatus(
            date=day,
            has_report=day in done or day in planned,
            is_plan=day in planned and day not in done,
        )
        for day in period_days(period)
    ]


def completion_rate(entries: Iterable[DailyEntry], period: Period) -> float:
    filled = {entry.date for entry in entries if period.contains(entry.date)}
    return len(filled) / period.total_days


def completion_status(entries: Iterable[DailyEntry], period: Period) -> str:
    """Eligibility of a month for generation. Weeks are never gated."""
    return PENDING if completion_rate(entries, period) > 0 else NOT_AVAILABLE
