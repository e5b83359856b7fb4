from .catalog import StageCatalog, StageCatalogStore, get_default_catalog
from .engine import (
    advance_stage,
    append_time_entry,
    get_current_stage,
    get_current_stage_name,
    get_workflow_progress,
    hours_by_stage,
    remove_time_entry,
)
from .schedule import build_schedule

__all__ = [
    "StageCatalog",
    "StageCatalogStore",
    "get_default_catalog",
    "advance_stage",
    "append_time_entry",
    "get_current_stage",
    "get_current_stage_name",
    "get_workflow_progress",
    "hours_by_stage",
    "remove_time_entry",
    "build_schedule",
]
