from dataclasses import dataclass, field
from typing import List, Sequence

from classbook.utils.date_utils import normalize_date, try_normalize_date


def _cell(row: Sequence, i: int) -> str:
    if i < len(row) and row[i] is not None:
        return str(row[i]).strip()
    return ""


# -----------------------------
# Data model
# -----------------------------
@dataclass
class Student:
    id: str
    name: str
    instagram: str = ""
    active: bool = True

    @staticmethod
    def from_row(row: Sequence) -> "Student":
        return Student(
            id=_cell(row, 0),
            name=_cell(row, 1),
            instagram=_cell(row, 2),
            active=_cell(row, 3).lower() == "true",
        )

    def to_row(self) -> List[str]:
        return [self.id, self.name, self.instagram or "", str(bool(self.active)).lower()]


@dataclass
class ClassDay:
    date: str                    # YYYY-MM-DD

    @staticmethod
    def from_row(row: Sequence) -> "ClassDay":
        raw = _cell(row, 0)
        return ClassDay(date=try_normalize_date(raw) or raw)


@dataclass
class Booking:
    date: str                    # YYYY-MM-DD
    student_id: str
    student_name: str = ""

    @staticmethod
    def from_row(row: Sequence) -> "Booking":
        raw = _cell(row, 0)
        return Booking(
            date=try_normalize_date(raw) or raw,
            student_name=_cell(row, 1),
            student_id=_cell(row, 2),
        )

    @staticmethod
    def create(date, student: Student) -> "Booking":
        return Booking(date=normalize_date(date), student_id=student.id, student_name=student.name)

    def to_row(self) -> List[str]:
        return [self.date, self.student_name, self.student_id]


@dataclass
class BookingInfo:
    """Students booked on one class day. Rebuilt on every sync, never stored."""
    date: str
    students: List[Student] = field(default_factory=list)
    is_class_day: bool = True

    @property
    def student_names(self) -> List[str]:
        return [s.name for s in self.students]


@dataclass
class SyncSnapshot:
    class_days: List[ClassDay] = field(default_factory=list)
    bookings: List[Booking] = field(default_factory=list)
    students: List[Student] = field(default_factory=list)
