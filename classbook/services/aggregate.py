from dataclasses import asdict
from typing import List

import pandas as pd

from classbook.models.entities import Booking, BookingInfo, Student, SyncSnapshot

STUDENT_COLUMNS = ["id", "name", "instagram", "active"]
BOOKING_COLUMNS = ["date", "student_id", "student_name"]


def students_frame(students: List[Student]) -> pd.DataFrame:
    if not students:
        return pd.DataFrame(columns=STUDENT_COLUMNS)
    return pd.DataFrame([asdict(s) for s in students], columns=STUDENT_COLUMNS)


def bookings_frame(bookings: List[Booking]) -> pd.DataFrame:
    if not bookings:
        return pd.DataFrame(columns=BOOKING_COLUMNS)
    return pd.DataFrame([asdict(b) for b in bookings], columns=BOOKING_COLUMNS)


def build_booking_infos(snapshot: SyncSnapshot) -> List[BookingInfo]:
    """
    One BookingInfo per class day, in class-day order. Students appear in
    booking-row order; bookings that point at an unknown student id or at a
    date that is not a class day are dropped.
    """
    roster = {s.id: s for s in snapshot.students}

    df = bookings_frame(snapshot.bookings)
    df = df[df["student_id"].isin(list(roster))]
    # groupby keeps row order within each group
    ids_by_date = {date: list(g["student_id"]) for date, g in df.groupby("date", sort=False)}

    infos = []
    for day in snapshot.class_days:
        ids = ids_by_date.get(day.date, [])
        infos.append(BookingInfo(date=day.date, students=[roster[i] for i in ids], is_class_day=True))
    return infos

