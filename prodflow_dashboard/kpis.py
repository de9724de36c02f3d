"""
KPI computation functions: pure functions with no side effects.

Provides severity classification, piece-weighted lead-time totals, the
global KPI summary, and the analytics tables behind the charts.
"""

import logging
import math
from typing import Iterable

import pandas as pd

from .config import (
    CRITICAL_DELTA_MIN,
    DELTA_WIP_INDEX,
    HOURLY_GROSS_EUR,
    MAJOR_DELTA_MIN,
    OTHER_MACRO_LABEL,
    SEVERITY_CRITICAL,
    SEVERITY_MAJOR,
    SEVERITY_MINOR,
    TOP_BOTTLENECK_COUNT,
    WIP_INDEX_BASELINE,
    WIP_INDEX_SCENARIO,
)
from .models import GlobalKpiSummary, MacroBottleneck, StationAggregate

logger = logging.getLogger(__name__)


def classify_severity(delta_min: float) -> str:
    """Return 'Critical', 'Major' or 'Minor' for a cycle-time delta.

    Logic
    -----
    - Critical if delta > 10 min
    - Major    if delta > 5 min
    - Minor    otherwise (including negative deltas)

    Both thresholds are strict, so a delta of exactly 10 is Major and
    exactly 5 is Minor.
    """
    if delta_min > CRITICAL_DELTA_MIN:
        return SEVERITY_CRITICAL
    if delta_min > MAJOR_DELTA_MIN:
        return SEVERITY_MAJOR
    return SEVERITY_MINOR


def round_half_up(value: float) -> int:
    """Round to the nearest integer, halves towards +infinity.

    Non-finite values give 0.
    """
    if not math.isfinite(value):
        logger.debug("Rounding non-finite value %r to 0", value)
        return 0
    return int(math.floor(value + 0.5))


def leadtime_totals(stations: Iterable[StationAggregate]) -> tuple[float, float]:
    """Return (planned_total_min, actual_total_min), weighted by piece count."""
    planned = 0.0
    actual = 0.0
    for station in stations:
        planned += station.kpi.planned_avg_min * station.kpi.piece_count
        actual += station.kpi.actual_avg_min * station.kpi.piece_count
    if not (math.isfinite(planned) and math.isfinite(actual)):
        logger.debug("Lead-time totals overflowed, using 0")
        return 0.0, 0.0
    return planned, actual


def group_by_macro(
    stations: Iterable[StationAggregate],
) -> dict[str, list[StationAggregate]]:
    """Group stations by macro stage, keeping first-seen stage order."""
    grouped: dict[str, list[StationAggregate]] = {}
    for station in stations:
        grouped.setdefault(station.macro_stage, []).append(station)
    return grouped


def rank_macro_bottlenecks(
    stations: Iterable[StationAggregate],
    limit: int = TOP_BOTTLENECK_COUNT,
) -> list[MacroBottleneck]:
    """Rank macro stages by the summed delta of their stations.

    Sums are rounded before ranking; the sort is stable, so equal sums
    keep first-seen stage order.
    """
    ranked = [
        MacroBottleneck(
            macro_stage=macro,
            delta_leadtime_total_min=round_half_up(
                sum(s.kpi.delta_min for s in members)
            ),
        )
        for macro, members in group_by_macro(stations).items()
    ]
    ranked.sort(key=lambda b: b.delta_leadtime_total_min, reverse=True)
    return ranked[:limit]


def summarise_global_kpis(stations: Iterable[StationAggregate]) -> GlobalKpiSummary:
    """Roll station aggregates up into the global KPI summary.

    The WIP index fields are fixed configuration placeholders and are not
    derived from the stations.
    """
    stations = list(stations)
    planned, actual = leadtime_totals(stations)

    summary = GlobalKpiSummary(
        leadtime_planned_global_min=round_half_up(planned),
        leadtime_actual_global_min=round_half_up(actual),
        delta_leadtime_global_min=round_half_up(actual - planned),
        wip_index_baseline=WIP_INDEX_BASELINE,
        wip_index_scenario=WIP_INDEX_SCENARIO,
        delta_wip_index=DELTA_WIP_INDEX,
        top_macro_bottlenecks=tuple(rank_macro_bottlenecks(stations)),
    )
    logger.info(
        "Global lead time: planned=%d min, actual=%d min (%d stations)",
        summary.leadtime_planned_global_min,
        summary.leadtime_actual_global_min,
        len(stations),
    )
    return summary


# ---------------------------------------------------------------------------
# Analytics tables
# ---------------------------------------------------------------------------

def station_cycle_table(stations: Iterable[StationAggregate]) -> pd.DataFrame:
    """Planned vs actual cycle time, one row per station in aggregation order."""
    columns = [
        "station_id", "station", "macro_stage", "planned_min", "actual_min",
        "delta_min", "severity", "piece_count",
    ]
    rows = [
        {
            "station_id": s.id,
            "station": s.label,
            "macro_stage": s.macro_stage,
            "planned_min": s.kpi.planned_avg_min,
            "actual_min": s.kpi.actual_avg_min,
            "delta_min": s.kpi.delta_min,
            "severity": s.kpi.severity,
            "piece_count": s.kpi.piece_count,
        }
        for s in stations
    ]
    return pd.DataFrame(rows, columns=columns)


def macro_leadtime_table(stations: Iterable[StationAggregate]) -> pd.DataFrame:
    """Per-stage lead time (sum of station actual averages) and summed delta."""
    rows = [
        {
            "macro_stage": macro,
            "leadtime_min": sum(s.kpi.actual_avg_min for s in members),
            "delta_min": sum(s.kpi.delta_min for s in members),
            "station_count": len(members),
        }
        for macro, members in group_by_macro(stations).items()
    ]
    return pd.DataFrame(
        rows, columns=["macro_stage", "leadtime_min", "delta_min", "station_count"]
    )


def severity_distribution(stations: Iterable[StationAggregate]) -> pd.DataFrame:
    """Station count per severity, in first-seen order."""
    counts: dict[str, int] = {}
    for station in stations:
        counts[station.kpi.severity] = counts.get(station.kpi.severity, 0) + 1
    return pd.DataFrame(
        [{"severity": sev, "count": n} for sev, n in counts.items()],
        columns=["severity", "count"],
    )


def delta_statistics(stations: Iterable[StationAggregate]) -> dict:
    """Mean and max station delta (0 when there are no stations)."""
    deltas = [s.kpi.delta_min for s in stations]
    if not deltas:
        return {"mean_delta_min": 0.0, "max_delta_min": 0.0}
    return {
        "mean_delta_min": sum(deltas) / len(deltas),
        "max_delta_min": max(deltas),
    }


def savings_by_station(
    stations: Iterable[StationAggregate],
    hourly_rate: float = HOURLY_GROSS_EUR,
) -> pd.DataFrame:
    """Labour cost recoverable if each station ran at its planned time.

    saved_min = max(0, actual - planned); saved_eur = saved_min / 60 * rate.
    """
    rows = []
    for s in stations:
        saved_min = max(0.0, s.kpi.actual_avg_min - s.kpi.planned_avg_min)
        rows.append({
            "station": s.label,
            "macro_stage": s.macro_stage,
            "planned_min": s.kpi.planned_avg_min,
            "actual_min": s.kpi.actual_avg_min,
            "saved_min": saved_min,
            "saved_eur": saved_min / 60 * hourly_rate,
        })
    return pd.DataFrame(
        rows,
        columns=[
            "station", "macro_stage", "planned_min", "actual_min",
            "saved_min", "saved_eur",
        ],
    )


def savings_summary(savings: pd.DataFrame) -> dict:
    """Totals over a savings_by_station() table."""
    if savings.empty:
        return {
            "total_saved_min": 0.0,
            "total_saved_eur": 0.0,
            "avg_saved_eur": 0.0,
            "max_saved_eur": 0.0,
        }
    return {
        "total_saved_min": float(savings["saved_min"].sum()),
        "total_saved_eur": float(savings["saved_eur"].sum()),
        "avg_saved_eur": float(savings["saved_eur"].mean()),
        "max_saved_eur": float(savings["saved_eur"].max()),
    }


def savings_by_macro(savings: pd.DataFrame) -> pd.DataFrame:
    """Aggregate a savings_by_station() table per macro stage.

    Stations without a stage are grouped under "Other".
    """
    if savings.empty:
        return pd.DataFrame(columns=["macro_stage", "saved_min", "saved_eur"])

    df = savings.copy()
    df["macro_stage"] = df["macro_stage"].replace("", OTHER_MACRO_LABEL).fillna(
        OTHER_MACRO_LABEL
    )
    result = (
        df.groupby("macro_stage", sort=False)[["saved_min", "saved_eur"]]
        .sum()
        .reset_index()
    )
    return result
