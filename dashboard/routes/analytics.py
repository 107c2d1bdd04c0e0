"""Analytics routes for the usage dashboard widgets.

This module provides the JSON endpoints behind the dashboard charts:
monthly token series, usage against limits, users per policy, the usage
target gauge, the year picker, the token summary cards and the per-group
tokens report.
"""

import logging
from datetime import datetime
from functools import lru_cache
from typing import Any, Callable, Dict, Optional

from fastapi import APIRouter, Depends, Query

from dashboard.analytics.range_resolver import resolve
from dashboard.analytics.reports import ReportAssembler
from dashboard.config import get_config
from dashboard.errors import InvalidRangeError
from dashboard.helpers.timestamps import utc_now
from dashboard.models.usage import Interval
from dashboard.storage import UsageStore, build_store

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["analytics"])


@lru_cache(maxsize=1)
def get_store() -> UsageStore:
    """Get the configured usage store (one per process)."""
    return build_store(get_config())


def get_clock() -> Callable[[], datetime]:
    """Get the clock used as the reference "now"."""
    return utc_now


def get_assembler(
    store: UsageStore = Depends(get_store),
    clock: Callable[[], datetime] = Depends(get_clock),
) -> ReportAssembler:
    """Build a request-scoped report assembler."""
    return ReportAssembler(
        store,
        clock=clock,
        top_policy_count=get_config().top_policy_count,
    )


def _parse_range(
    assembler: ReportAssembler,
    preset: Optional[str],
    start_time: Optional[str],
    end_time: Optional[str],
    required: bool = True,
) -> Optional[Interval]:
    """Resolve query parameters into an interval.

    Explicit ``from``/``to`` always mean a custom range; otherwise the
    preset is used.

    Raises:
        InvalidRangeError: If the range is required but missing, or invalid
    """
    now = assembler.now()
    if start_time is not None or end_time is not None:
        return resolve("custom", start_time, end_time, now=now)
    if preset:
        return resolve(preset.strip().lower(), now=now)
    if required:
        raise InvalidRangeError("from/to is required")
    return None


@router.get("/token-usage/monthly")
async def monthly_series(
    preset: Optional[str] = Query(None, description="Time preset (last_month, current_year, ...)"),
    start_time: Optional[str] = Query(None, alias="from", description="Start time (ISO format)"),
    end_time: Optional[str] = Query(None, alias="to", description="End time (ISO format, exclusive)"),
    assembler: ReportAssembler = Depends(get_assembler),
) -> Dict[str, Any]:
    """Token usage per month within ``[from, to)`` as ``{points}``."""
    interval = _parse_range(assembler, preset, start_time, end_time)
    return await assembler.monthly_series(interval)


@router.get("/analytics/token-usage-vs-limit")
async def token_usage_vs_limit(
    mode: Optional[str] = Query(None, description="monthly, quarterly or annually"),
    year: Optional[str] = Query(None, description="Calendar year"),
    assembler: ReportAssembler = Depends(get_assembler),
) -> Dict[str, Any]:
    """Usage per bucket of a year against the system-wide token limit."""
    return await assembler.token_usage_vs_limit(mode, year)


@router.get("/analytics/usage-vs-policy-limit")
async def usage_vs_policy_limit(
    preset: Optional[str] = Query(None, description="Time preset"),
    start_time: Optional[str] = Query(None, alias="from", description="Start time (ISO format)"),
    end_time: Optional[str] = Query(None, alias="to", description="End time (ISO format, exclusive)"),
    assembler: ReportAssembler = Depends(get_assembler),
) -> Dict[str, Any]:
    """Per-policy usage against each policy's limit."""
    interval = _parse_range(assembler, preset, start_time, end_time)
    return await assembler.usage_vs_policy_limit(interval)


@router.get("/analytics/users-by")
async def users_by(
    group: Optional[str] = Query(None, description="Grouping (only 'policy' is supported)"),
    assembler: ReportAssembler = Depends(get_assembler),
) -> Dict[str, Any]:
    """User counts per policy."""
    return await assembler.users_by(group)


@router.get("/token-usage/target")
async def usage_target(
    preset: Optional[str] = Query(None, description="Time preset"),
    start_time: Optional[str] = Query(None, alias="from", description="Start time (ISO format)"),
    end_time: Optional[str] = Query(None, alias="to", description="End time (ISO format, exclusive)"),
    assembler: ReportAssembler = Depends(get_assembler),
) -> Dict[str, Any]:
    """System usage against the aggregate limit plus the top policies."""
    interval = _parse_range(assembler, preset, start_time, end_time)
    return await assembler.usage_target(interval)


@router.get("/analytics/years")
async def available_years(
    assembler: ReportAssembler = Depends(get_assembler),
) -> Dict[str, Any]:
    """Selectable years, newest first; never empty."""
    return await assembler.available_years()


@router.get("/token-usage/summary")
async def token_summary(
    preset: Optional[str] = Query(None, description="Time preset"),
    start_time: Optional[str] = Query(None, alias="from", description="Start time (ISO format)"),
    end_time: Optional[str] = Query(None, alias="to", description="End time (ISO format, exclusive)"),
    assembler: ReportAssembler = Depends(get_assembler),
) -> Dict[str, Any]:
    """Per-metric token totals with the change against the previous window."""
    interval = _parse_range(assembler, preset, start_time, end_time)
    return await assembler.token_summary(interval)


@router.get("/reports/tokens")
async def tokens_report(
    by: Optional[str] = Query(None, description="policy or user"),
    interval: Optional[str] = Query(None, description="day or month"),
    preset: Optional[str] = Query(None, description="Time preset"),
    start_time: Optional[str] = Query(None, alias="from", description="Start time (ISO format)"),
    end_time: Optional[str] = Query(None, alias="to", description="End time (ISO format, exclusive)"),
    assembler: ReportAssembler = Depends(get_assembler),
) -> Dict[str, Any]:
    """Token usage per group over time.

    Defaults to the last twelve calendar months when no range is given.
    """
    reporting_range = _parse_range(
        assembler, preset, start_time, end_time, required=False
    )
    return await assembler.tokens_report(by, interval, reporting_range)
