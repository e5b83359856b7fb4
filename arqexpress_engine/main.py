"""
ArqExpress Pricing & Workflow Engine — command line entry point

Price a scope:
    python -m arqexpress_engine quote scope.json

Report a project's stage, progress and profitability:
    python -m arqexpress_engine report project.json

Derive an office hourly rate:
    python -m arqexpress_engine hourly-rate --salaries 24000 --costs 8000 --margin 30

Lay out a business-day schedule:
    python -m arqexpress_engine schedule --service decor --modality online --start 2026-03-02

Or import and call the engine directly:
    from arqexpress_engine.pricing import compute_budget
    calculation = compute_budget({"service_type": "decor", ...})
"""

from __future__ import annotations

import argparse
import json
import logging
import sys
from datetime import date
from pathlib import Path
from typing import Optional

from arqexpress_engine.config import get_settings
from arqexpress_engine.exceptions import EngineError
from arqexpress_engine.finance.derivation import derive
from arqexpress_engine.models.enums import Modality, Positioning, ServiceType
from arqexpress_engine.models.project import Project
from arqexpress_engine.pricing.calculator import compute_budget
from arqexpress_engine.pricing.hourly_rate import compute_office_hourly_rate
from arqexpress_engine.pricing.tables import PricingTablesStore
from arqexpress_engine.utils.logger import setup_logging
from arqexpress_engine.workflow.catalog import get_default_catalog
from arqexpress_engine.workflow.engine import (
    get_current_stage_name,
    get_workflow_progress,
    hours_by_stage,
)
from arqexpress_engine.workflow.schedule import build_schedule

logger = logging.getLogger(__name__)


def _read_json(path: str) -> dict:
    return json.loads(Path(path).read_text(encoding="utf-8"))


def _print_json(payload) -> None:
    print(json.dumps(payload, indent=2, ensure_ascii=False, default=str))


# ── Commands ─────────────────────────────────────────────

def quote(scope_path: str, tables_path: Optional[str] = None) -> dict:
    """Price the scope in ``scope_path`` and return the Calculation as a dict."""
    tables = PricingTablesStore(tables_path).load() if tables_path else None
    calculation = compute_budget(_read_json(scope_path), tables)
    currency = get_settings().default_currency

    logger.info("-" * 60)
    logger.info(f"  {calculation.service_type.value.upper()}: {calculation.description}")
    logger.info(f"  Final price:          {currency} {calculation.final_price:,.2f}")
    logger.info(f"  Price with discount:  {currency} {calculation.price_with_discount:,.2f}")
    logger.info(f"  Estimated hours:      {calculation.estimated_hours}")
    logger.info(f"  Max profitable hours: {calculation.max_profitable_hours}")
    logger.info(f"  Efficiency:           {calculation.efficiency.value} ({calculation.hour_rate:,.2f}/h)")
    logger.info("-" * 60)

    result = calculation.model_dump(mode="json")
    _print_json(result)
    return result


def report(project_path: str) -> dict:
    """Summarize a persisted project record."""
    project = Project.model_validate(_read_json(project_path))
    derivation = derive(project)
    result = {
        "project_id": project.id,
        "status": project.status.value,
        "current_stage": get_current_stage_name(project),
        "progress": get_workflow_progress(project),
        "hours_by_stage": hours_by_stage(project),
        "financials": derivation.model_dump(mode="json"),
    }

    logger.info(
        f"Project {project.id}: {result['current_stage']} ({result['progress']}%) | "
        f"{derivation.hourly_yield:,.2f}/h → {derivation.profitability_flag.value}"
    )
    _print_json(result)
    return result


def hourly_rate(salaries: float, costs: float, margin: float, positioning: str) -> dict:
    result = compute_office_hourly_rate(salaries, costs, margin, Positioning(positioning))
    logger.info(f"Office hourly rate: {result.sale_value:,.2f}/h ({positioning})")
    payload = result.model_dump(mode="json")
    _print_json(payload)
    return payload


def schedule(service: str, modality: str, start: str) -> list:
    stages = get_default_catalog().snapshot(ServiceType(service), Modality(modality))
    rows = build_schedule(stages, date.fromisoformat(start))
    for row in rows:
        marker = " [meeting]" if row.is_meeting else ""
        logger.info(f"  {row.start_date} → {row.end_date}  {row.stage.label}{marker}")
    payload = [r.model_dump(mode="json") for r in rows]
    _print_json(payload)
    return payload


# ── CLI ──────────────────────────────────────────────────

def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="arqexpress_engine",
        description=get_settings().app_name,
    )
    sub = parser.add_subparsers(dest="command", required=True)

    p_quote = sub.add_parser("quote", help="Price a scope JSON file")
    p_quote.add_argument("scope", help="Path to a ScopeParameters JSON file")
    p_quote.add_argument("--tables", default=None, help="Pricing tables JSON (default: settings)")

    p_report = sub.add_parser("report", help="Report progress and profitability of a project")
    p_report.add_argument("project", help="Path to a Project JSON file")

    p_rate = sub.add_parser("hourly-rate", help="Derive the office hourly rate")
    p_rate.add_argument("--salaries", type=float, required=True, help="Monthly team salaries")
    p_rate.add_argument("--costs", type=float, required=True, help="Monthly operational costs")
    p_rate.add_argument("--margin", type=float, default=30.0, help="Target margin percent (10-100)")
    p_rate.add_argument(
        "--positioning",
        choices=[p.value for p in Positioning],
        default=Positioning.BEM_POSICIONADO.value,
    )

    p_sched = sub.add_parser("schedule", help="Lay out a business-day stage schedule")
    p_sched.add_argument("--service", choices=[s.value for s in ServiceType], required=True)
    p_sched.add_argument("--modality", choices=[m.value for m in Modality], default=Modality.ONLINE.value)
    p_sched.add_argument("--start", default=date.today().isoformat(), help="Start date (YYYY-MM-DD)")

    return parser


def main(argv: Optional[list[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    setup_logging(get_settings().log_level)

    try:
        if args.command == "quote":
            quote(args.scope, args.tables)
        elif args.command == "report":
            report(args.project)
        elif args.command == "hourly-rate":
            hourly_rate(args.salaries, args.costs, args.margin, args.positioning)
        elif args.command == "schedule":
            schedule(args.service, args.modality, args.start)
    except EngineError as e:
        logger.error(f"{e.kind}: {e.message}")
        _print_json({"error": e.to_dict()})
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
