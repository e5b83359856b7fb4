"""
Business-day schedule for a stage list.

Each stage starts where the previous one ended and lasts its
``duration_days`` hint in business days (weekends skipped).
"""

from __future__ import annotations

from datetime import date, timedelta

from arqexpress_engine.models.schemas import ScheduledStage, StageDefinition

DEFAULT_STAGE_DAYS = 3
MEETING_STAGE_IDS = {"visita_tecnica"}


def is_meeting_stage(stage: StageDefinition) -> bool:
    """Stages that need a slot booked with the client."""
    return stage.id.startswith("reuniao_") or stage.id in MEETING_STAGE_IDS


def next_business_day(day: date) -> date:
    while day.weekday() >= 5:
        day += timedelta(days=1)
    return day


def add_business_days(start: date, days: int) -> date:
    current = start
    added = 0
    while added < days:
        current += timedelta(days=1)
        if current.weekday() < 5:
            added += 1
    return current


def build_schedule(
    stage_list: list[StageDefinition],
    start_date: date,
    default_days: int = DEFAULT_STAGE_DAYS,
) -> list[ScheduledStage]:
    current = next_business_day(start_date)
    schedule = []
    for stage in sorted(stage_list, key=lambda s: s.order_index):
        days = stage.duration_days or default_days
        end = add_business_days(current, days)
        schedule.append(ScheduledStage(
            stage=stage,
            start_date=current,
            end_date=end,
            duration_days=days,
            is_meeting=is_meeting_stage(stage),
        ))
        current = end
    return schedule
