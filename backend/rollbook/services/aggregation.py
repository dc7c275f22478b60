"""
Attendance Aggregation Service - per-status counts and effective percentage.

Implements the attendance statistics formula:
1. Count records by status (present, absent, late, excused)
2. totalDays = present + absent + late + excused
3. percentage = 100 * (present + late) / totalDays, rounded half up
   (0 if no records)

A late arrival is not an absence: Late counts toward the percentage.
The same computation is used for a single student and for every student
in a section; callers filter the records to the subject first.
"""

from typing import Dict, Iterable

from rollbook.models.attendance import (
    STATUS_PRESENT, STATUS_ABSENT, STATUS_LATE, STATUS_EXCUSED
)


def compute_stats(records: Iterable) -> Dict[str, int]:
    """
    Aggregate attendance records into counts and a percentage.

    Args:
        records: Objects with a ``status`` attribute (ORM rows or similar),
                 already filtered to one student or one section

    Returns:
        dict with present, absent, late, excused, percentage and totalDays
    """
    counts = {
        STATUS_PRESENT: 0,
        STATUS_ABSENT: 0,
        STATUS_LATE: 0,
        STATUS_EXCUSED: 0,
    }
    for record in records:
        if record.status in counts:
            counts[record.status] += 1

    present = counts[STATUS_PRESENT]
    late = counts[STATUS_LATE]
    total_days = sum(counts.values())
    attended = present + late
    # Integer half-up rounding: 12.5 -> 13
    percentage = (200 * attended + total_days) // (2 * total_days) if total_days > 0 else 0

    return {
        "present": present,
        "absent": counts[STATUS_ABSENT],
        "late": late,
        "excused": counts[STATUS_EXCUSED],
        "percentage": percentage,
        "totalDays": total_days,
    }


def attendance_map(records: Iterable) -> Dict[str, str]:
    """Map date -> status for one student's records."""
    return {r.date: r.status for r in records}
