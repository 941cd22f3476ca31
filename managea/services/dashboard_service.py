# /managea/services/dashboard_service.py

import logging
from datetime import date as date_type
from typing import Optional

from ..config import TOP_FINES_LIMIT
from ..models.dashboard_model import CountEntry, DashboardSummary, TopFineEntry
from . import fine_table
from .database_service import DatabaseService

logger = logging.getLogger(__name__)


def build_summary(classes, students, violations, today: str, top_n: int) -> DashboardSummary:
    """
    Pure projection over one snapshot of classes, students and violations.
    Takes any objects with the ORM attribute names, so live snapshots can be
    summarised without another query.
    """
    prayer_counts = {prayer: 0 for prayer in fine_table.PRAYERS}
    type_counts = {}
    today_count = 0
    late_count = 0

    for v in violations:
        if v.date == today:
            today_count += 1
        if v.prayer in prayer_counts:
            prayer_counts[v.prayer] += 1
        if v.type == fine_table.LATE_TO_SCHOOL:
            late_count += 1
        type_counts[v.type] = type_counts.get(v.type, 0) + 1

    # sorted() is stable, so equal counts keep first-seen order.
    sorted_types = sorted(type_counts.items(), key=lambda item: item[1], reverse=True)

    fined = sorted(
        (s for s in students if (s.total_fine or 0) > 0),
        key=lambda s: s.total_fine,
        reverse=True,
    )

    return DashboardSummary(
        classCount=len(classes),
        studentCount=len(students),
        totalFines=sum(s.total_fine or 0 for s in students),
        totalViolations=len(violations),
        todayViolations=today_count,
        lateToSchoolCount=late_count,
        prayerCounts=[CountEntry(label=p, count=c) for p, c in prayer_counts.items()],
        typeCounts=[CountEntry(label=t, count=c) for t, c in sorted_types],
        topFines=[
            TopFineEntry(
                student_id=s.id,
                name=s.name,
                room=s.room or "",
                class_name=s.class_name or "",
                total_fine=s.total_fine,
            )
            for s in fined[:top_n]
        ],
    )


def get_summary_data(db: DatabaseService, today: Optional[date_type] = None,
                     top_n: int = TOP_FINES_LIMIT) -> DashboardSummary:
    """
    Calculates the dashboard statistics from the current records.

    Args:
        db: An instance of the DatabaseService, provided by dependency injection.
        today: The calendar date counted as "today". Defaults to the local date.
        top_n: How many students to list under top fines.
    """
    try:
        today_str = (today or date_type.today()).isoformat()
        return build_summary(
            db.get_all_classes(),
            db.get_all_students(),
            db.get_all_violations(),
            today=today_str,
            top_n=top_n,
        )
    except Exception:
        logger.exception("Error calculating dashboard summary")
        raise
