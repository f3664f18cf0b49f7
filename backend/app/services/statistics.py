"""
Statistics Service - Attendance counts, percentages and daily tallies.

Implements the attendance formula:
1. Count marks by status (present, absent, late)
2. percentage = (present + late) / total * 100, rounded half-up to 2 decimals
3. percentage = 0 when there are no marks

Late counts as attended. All aggregation is done in Python over rows
already fetched by the caller.
"""

import time
from collections import Counter
from decimal import Decimal, ROUND_HALF_UP
from typing import Iterable

from app.models.attendance import Attendance, AttendanceStatus
from app.logging_config import get_logger, log_with_context

# Channel logger for statistics computations
logger = get_logger("stats")


def attendance_percentage(present: int, late: int, total: int) -> float:
    """Percentage of marks that count as attended, or 0.0 for no marks."""
    if total <= 0:
        return 0.0
    percentage = Decimal((present + late) * 100) / Decimal(total)
    return float(percentage.quantize(Decimal("0.01"), rounding=ROUND_HALF_UP))


def _status_key(status) -> str:
    """Map a stored status ("Present") to its counter key ("present")."""
    if isinstance(status, AttendanceStatus):
        status = status.value
    return str(status).lower()


def summarize_attendance(records: Iterable[Attendance], context: dict = None) -> dict:
    """
    Count marks per status and compute the attendance percentage.

    Args:
        records: Attendance rows (anything with a `status` attribute)
        context: Optional logging context (student_id, class_id)

    Returns:
        Dict with total, present, absent, late and percentage
    """
    start_time = time.time()

    counts = Counter(_status_key(r.status) for r in records)
    present = counts.get("present", 0)
    absent = counts.get("absent", 0)
    late = counts.get("late", 0)
    total = sum(counts.values())

    summary = {
        "total": total,
        "present": present,
        "absent": absent,
        "late": late,
        "percentage": attendance_percentage(present, late, total)
    }

    duration_ms = (time.time() - start_time) * 1000
    log_with_context(logger, "DEBUG",
        "Attendance summarized: {} marks, {:.2f}%".format(total, summary["percentage"]),
        context=context,
        extra_data={"duration_ms": round(duration_ms, 2)})

    return summary


def build_daily_summary(records: Iterable[Attendance]) -> dict:
    """
    Bucket marks by calendar date.

    Returns:
        {"YYYY-MM-DD": {"present": n, "absent": n, "late": n, "total": n}}
    """
    daily = {}
    for record in records:
        date_key = record.date.isoformat()
        bucket = daily.setdefault(date_key, {"present": 0, "absent": 0, "late": 0, "total": 0})
        key = _status_key(record.status)
        if key in bucket:
            bucket[key] += 1
        bucket["total"] += 1
    return daily
