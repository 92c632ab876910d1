"""
Student use cases on top of a :class:`RecordStore`.

Search and stats are linear scans over the whole student namespace; there is
no index and no snapshot, so concurrent writes may or may not be observed.
"""

from __future__ import annotations

import logging
from collections import Counter
from typing import Dict, List, Mapping, Optional

from ..errors import ValidationError
from ..schemas import STUDENT_FIELDS
from .record_store import Fields, RecordStore

logger = logging.getLogger(__name__)

UNKNOWN_PROGRAM = "Unknown"


def _present(value: Optional[str]) -> bool:
    return value is not None and value != ""


def to_student(record_id: str, fields: Mapping[str, str]) -> Dict[str, str]:
    student = dict(fields)
    student["studentId"] = record_id
    return student


def matches(student: Mapping[str, str], query: str) -> bool:
    """True when any field value contains ``query`` (already lower-cased)."""
    return any(query in str(value).lower() for value in student.values())


class StudentService:
    def __init__(self, store: RecordStore) -> None:
        self.store = store

    def add_student(self, payload: Mapping[str, Optional[str]]) -> str:
        required = ("studentId",) + STUDENT_FIELDS
        missing = [name for name in required if not _present(payload.get(name))]
        if missing:
            logger.warning(f"Rejected student create, missing: {', '.join(missing)}")
            raise ValidationError()

        student_id = str(payload["studentId"])
        fields = {name: str(payload[name]) for name in STUDENT_FIELDS}
        self.store.create(student_id, fields)
        return student_id

    def get_student(self, student_id: str) -> Dict[str, str]:
        return to_student(student_id, self.store.read(student_id))

    def list_students(self) -> List[Dict[str, str]]:
        return [to_student(record_id, fields) for record_id, fields in self.store.scan_all()]

    def update_student(self, student_id: str, payload: Mapping[str, Optional[str]]) -> None:
        fields: Fields = {
            name: str(payload[name]) for name in STUDENT_FIELDS if _present(payload.get(name))
        }
        self.store.update_partial(student_id, fields)

    def delete_student(self, student_id: str) -> None:
        self.store.delete(student_id)

    def search(self, query: Optional[str]) -> List[Dict[str, str]]:
        q = (query or "").strip().lower()
        students = self.list_students()
        if not q:
            logger.debug(f"Empty search query, returning all {len(students)} student(s)")
            return students

        found = [student for student in students if matches(student, q)]
        logger.info(f"Search {q!r} matched {len(found)} of {len(students)} student(s)")
        return found

    def stats(self) -> Dict[str, int]:
        counts: Counter = Counter()
        for _, fields in self.store.scan_all():
            program = fields.get("program") or ""
            counts[program if program.strip() else UNKNOWN_PROGRAM] += 1
        return dict(counts)
