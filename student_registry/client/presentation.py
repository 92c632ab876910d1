"""
Client-side presentation helpers: name decomposition, in-memory filtering
and sorting of an already fetched student list, and plain-text renderers
for the table and the per-program bar chart.
"""

from __future__ import annotations

from typing import Dict, Iterable, List, Mapping, Optional, Sequence

from ..schemas import STUDENT_FIELDS

NAME_KEYS = ("lastName", "firstName", "middleName")
TABLE_COLUMNS = ("studentId",) + NAME_KEYS + STUDENT_FIELDS[1:]
SORT_KEYS = ("studentId",) + NAME_KEYS + STUDENT_FIELDS


def split_full_name(full_name: Optional[str]) -> Dict[str, str]:
    """Split ``"Last, First Middle"`` (or ``"First Middle Last"``) into parts."""
    parts = {key: "" for key in NAME_KEYS}
    if not full_name or not full_name.strip():
        return parts

    if "," in full_name:
        last, rest = full_name.split(",", 1)
        names = rest.split()
        parts["lastName"] = last.strip()
        parts["firstName"] = names[0] if names else ""
        parts["middleName"] = " ".join(names[1:])
    else:
        names = full_name.split()
        if len(names) == 1:
            parts["firstName"] = names[0]
        else:
            parts["firstName"] = names[0]
            parts["lastName"] = names[-1]
            parts["middleName"] = " ".join(names[1:-1])
    return parts


def combine_full_name(last: Optional[str], first: Optional[str], middle: Optional[str] = None) -> str:
    """Inverse of :func:`split_full_name`: ``"Last, First"`` or ``"Last, First Middle"``."""
    last = (last or "").strip()
    first = (first or "").strip()
    middle = (middle or "").strip()
    return f"{last}, {first} {middle}" if middle else f"{last}, {first}"


def filter_students(students: Iterable[Mapping[str, str]], query: str) -> List[Mapping[str, str]]:
    q = query.strip().lower()
    if not q:
        return list(students)
    return [s for s in students if any(q in str(v).lower() for v in s.values())]


def _sort_value(student: Mapping[str, str], key: str) -> str:
    if key in NAME_KEYS:
        return split_full_name(student.get("fullName"))[key].lower()
    value = student.get(key)
    return str(value).lower() if value else ""


def sort_students(
    students: Iterable[Mapping[str, str]], key: Optional[str], descending: bool = False
) -> List[Mapping[str, str]]:
    students = list(students)
    if not key:
        return students
    if key not in SORT_KEYS:
        raise ValueError(f"Cannot sort by {key!r}; choose one of {', '.join(SORT_KEYS)}")
    return sorted(students, key=lambda s: _sort_value(s, key), reverse=descending)


def _row(student: Mapping[str, str]) -> List[str]:
    names = split_full_name(student.get("fullName"))
    values = {**student, **names}
    return [str(values.get(column) or "") for column in TABLE_COLUMNS]


def render_table(students: Sequence[Mapping[str, str]]) -> str:
    rows = [list(TABLE_COLUMNS)] + [_row(s) for s in students]
    widths = [max(len(row[i]) for row in rows) for i in range(len(TABLE_COLUMNS))]
    lines = []
    for n, row in enumerate(rows):
        lines.append("  ".join(cell.ljust(widths[i]) for i, cell in enumerate(row)).rstrip())
        if n == 0:
            lines.append("  ".join("-" * w for w in widths))
    if not students:
        lines.append("(no students)")
    return "\n".join(lines)


def render_stats_chart(stats: Mapping[str, int], width: int = 40, mark: str = "#") -> str:
    """Horizontal bar chart of students per program, largest first."""
    if not stats:
        return "(no students)"
    ordered = sorted(stats.items(), key=lambda item: (-item[1], item[0]))
    label_width = max(len(label) for label, _ in ordered)
    peak = max(count for _, count in ordered) or 1
    lines = []
    for label, count in ordered:
        bar = mark * max(1, round(count * width / peak)) if count else ""
        lines.append(f"{label.ljust(label_width)} | {bar} {count}")
    return "\n".join(lines)
