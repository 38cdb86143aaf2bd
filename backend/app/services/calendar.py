from __future__ import annotations

from datetime import date, timedelta
import logging

from sqlalchemy import select
from sqlalchemy.orm import Session

from app.core.exceptions import SemesterDateRangeMissing
from app.models.directory import Program, SemesterDateRange, SemesterSystem
from app.schemas.slots import DayOfWeek, weekday_of

logger = logging.getLogger(__name__)


def semester_date_range(
    db: Session,
    semester_id: str,
    semester_system: SemesterSystem | str | None,
) -> tuple[date, date]:
    if semester_system is None:
        raise SemesterDateRangeMissing(semester_id, None)
    record = db.execute(
        select(SemesterDateRange).where(
            SemesterDateRange.semester_id == semester_id,
            SemesterDateRange.semester_system == SemesterSystem(semester_system),
        )
    ).scalar_one_or_none()
    if record is None or record.start_date is None or record.end_date is None:
        raise SemesterDateRangeMissing(semester_id, SemesterSystem(semester_system).value)
    return record.start_date, record.end_date


def occurrences(weekday: DayOfWeek | str, start: date, end: date) -> list[date]:
    target = DayOfWeek(weekday)
    current = start
    while current <= end and weekday_of(current) != target:
        current += timedelta(days=1)
    dates: list[date] = []
    while current <= end:
        dates.append(current)
        current += timedelta(days=7)
    return dates


def future_dates(
    db: Session,
    weekday: DayOfWeek | str,
    semester_id: str,
    program: Program,
    *,
    today: date | None = None,
) -> list[date]:
    """Dates in the semester, from today on, that fall on ``weekday``.

    A semester without a configured range yields no dates, which makes every
    recurring slot count as unlocked.
    """
    try:
        start, end = semester_date_range(db, semester_id, program.semester_system)
    except SemesterDateRangeMissing:
        logger.debug("No date range for %s / %s", semester_id, program.p_id)
        return []
    lower = max(start, today or date.today())
    return occurrences(weekday, lower, end)
