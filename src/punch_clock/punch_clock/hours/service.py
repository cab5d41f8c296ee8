from __future__ import annotations

from collections import defaultdict
from dataclasses import dataclass
from datetime import date

from ..adjustments.service import AdjustmentWorkflow
from ..core.exceptions import ValidationError
from ..punches.service import PunchLedger
from .engine import format_minutes, summarize_day


@dataclass(frozen=True)
class ReportData:
    rows: list[dict]
    summary: dict


class HoursReportService:
    """Per-day worked hours over a date range, on the effective timeline."""

    def __init__(self, ledger: PunchLedger, workflow: AdjustmentWorkflow):
        self._ledger = ledger
        self._workflow = workflow

    def build_report(self, *, subject_id: int, start: date, end: date) -> ReportData:
        if end < start:
            raise ValidationError("end must be on or after start")

        punches = self._ledger.punches_between(subject_id, start, end)
        effective = self._workflow.effective_timeline(subject_id, punches)

        by_day = defaultdict(list)
        for p in effective:
            by_day[p.recorded_timestamp.date()].append(p)

        rows: list[dict] = []
        total_minutes = 0
        complete_days = 0
        for day in sorted(by_day):
            summary = summarize_day(day, by_day[day])
            total_minutes += summary.worked_minutes
            complete_days += int(summary.complete_day)
            rows.append(
                {
                    "day": day.isoformat(),
                    "punch_count": len(summary.punches),
                    "worked_minutes": summary.worked_minutes,
                    "worked_hours": summary.worked_hours,
                    "complete_day": summary.complete_day,
                    "adjusted_punches": sum(1 for p in summary.punches if p.adjusted),
                }
            )

        days_worked = len(rows)
        return ReportData(
            rows=rows,
            summary={
                "start": start.isoformat(),
                "end": end.isoformat(),
                "days_worked": days_worked,
                "complete_days": complete_days,
                "total_punches": len(effective),
                "total_minutes": total_minutes,
                "total_hours": format_minutes(total_minutes),
                "average_minutes_per_day": (total_minutes // days_worked) if days_worked else 0,
            },
        )
