"""
Data transforms: group raw cycle-time rows into station aggregates, derive
issue records, and build the macro/detail graph.

The functions here never raise for row content: missing columns fall back
to default labels and unreadable times count as 0 minutes.
"""

import logging
import math
from typing import Any, Iterable

from .config import (
    CRITICAL_DELTA_MIN,
    DEFAULT_EXPERIENCE_LEVEL,
    ISSUE_BOTTLENECK,
    ISSUE_HIGH_RISK_PART,
    ISSUE_ID_PREFIX,
    ISSUE_LEVEL,
    MACRO_ID_PREFIX,
    MAJOR_DELTA_MIN,
    NOT_SPECIFIED,
    STATION_ID_PREFIX,
    UNIT_COST,
    UNKNOWN_LABEL,
)
from .kpis import classify_severity, group_by_macro, leadtime_totals, summarise_global_kpis
from .loaders.utils import FieldReader, parse_minutes
from .models import (
    Edge,
    Graph,
    GraphLevel,
    IssueRecord,
    MacroAggregate,
    MacroKpi,
    Snapshot,
    StationAggregate,
    StationKpi,
)

logger = logging.getLogger(__name__)

Row = dict[str, Any]


def group_rows_by_station(
    rows: Iterable[Row],
    reader: FieldReader | None = None,
) -> dict[str, list[Row]]:
    """Group rows by station name, in the order stations are first seen."""
    reader = reader or FieldReader()
    grouped: dict[str, list[Row]] = {}
    for row in rows:
        name = reader.text(row, "station", UNKNOWN_LABEL)
        grouped.setdefault(name, []).append(row)
    return grouped


def _mean(values: list[float]) -> float:
    if not values:
        return 0.0
    mean = sum(values) / len(values)
    if not math.isfinite(mean):
        logger.debug("Non-finite mean over %d values, using 0", len(values))
        return 0.0
    return mean


def aggregate_station(
    station_id: str,
    name: str,
    rows: list[Row],
    reader: FieldReader | None = None,
) -> StationAggregate:
    """Build one station aggregate from the rows mapped to it.

    The macro stage is taken from the first row.
    """
    reader = reader or FieldReader()

    planned_avg = _mean([parse_minutes(reader.get(r, "planned_time")) for r in rows])
    actual_avg = _mean([parse_minutes(reader.get(r, "actual_time")) for r in rows])
    delta = actual_avg - planned_avg
    macro_stage = reader.text(rows[0], "macro_stage", UNKNOWN_LABEL) if rows else UNKNOWN_LABEL

    logger.debug(
        "Station %s: planned=%.2f actual=%.2f delta=%.2f (%d pieces)",
        name, planned_avg, actual_avg, delta, len(rows),
    )

    return StationAggregate(
        id=station_id,
        label=name,
        macro_stage=macro_stage,
        kpi=StationKpi(
            planned_avg_min=planned_avg,
            actual_avg_min=actual_avg,
            delta_min=delta,
            severity=classify_severity(delta),
            piece_count=len(rows),
        ),
    )


def aggregate_stations(
    rows: Iterable[Row],
    reader: FieldReader | None = None,
) -> dict[str, StationAggregate]:
    """Aggregate raw rows into stations keyed by id (P1, P2, ...).

    Ids follow the order in which distinct station names first appear;
    the returned dict preserves that order.
    """
    reader = reader or FieldReader()
    return _aggregate_groups(group_rows_by_station(rows, reader), reader)


def _aggregate_groups(
    grouped: dict[str, list[Row]],
    reader: FieldReader,
) -> dict[str, StationAggregate]:
    stations: dict[str, StationAggregate] = {}
    for ordinal, (name, station_rows) in enumerate(grouped.items(), start=1):
        station_id = f"{STATION_ID_PREFIX}{ordinal}"
        stations[station_id] = aggregate_station(station_id, name, station_rows, reader)

    logger.info("Aggregated %d stations", len(stations))
    return stations


def classify_issue(
    station: StationAggregate,
    rows: list[Row],
    reader: FieldReader | None = None,
) -> IssueRecord | None:
    """Return an issue record for a station drifting more than 5 min, else None.

    Stations above 10 min are tagged 'bottleneck', the others
    'high_risk_part'. Anomaly, cause and cost/risk text come from the
    station's first row.
    """
    delta = station.kpi.delta_min
    if not delta > MAJOR_DELTA_MIN:
        return None

    reader = reader or FieldReader()
    first = rows[0] if rows else {}
    anomaly = reader.text(first, "anomaly", NOT_SPECIFIED)
    cause = reader.text(first, "cause", NOT_SPECIFIED)
    cost_risk = reader.text(first, "cost_risk", NOT_SPECIFIED)

    ordinal = station.id[len(STATION_ID_PREFIX):]
    return IssueRecord(
        id=f"{ISSUE_ID_PREFIX}{ordinal}",
        level=ISSUE_LEVEL,
        station_id=station.id,
        macro_stage=station.macro_stage,
        issue_type=ISSUE_BOTTLENECK if delta > CRITICAL_DELTA_MIN else ISSUE_HIGH_RISK_PART,
        delta_min=delta,
        piece_count=station.kpi.piece_count,
        severity=station.kpi.severity,
        estimated_cost=station.kpi.piece_count * UNIT_COST,
        experience_level=DEFAULT_EXPERIENCE_LEVEL,
        anomaly_type=anomaly,
        cost_risk=cost_risk,
        summary=f"{station.label} : {anomaly} - {cause}",
    )


def _chain_edges(nodes: list) -> tuple[Edge, ...]:
    # Positional: node i -> node i+1, whatever the real flow is
    return tuple(
        Edge(source=a.id, target=b.id) for a, b in zip(nodes, nodes[1:])
    )


def build_macro_aggregates(stations: list[StationAggregate]) -> list[MacroAggregate]:
    """One aggregate per distinct macro stage, in first-seen order.

    Every stage carries the same global figures: piece-weighted actual
    total / station count as lead time, and the absolute actual-planned
    gap / station count as delta.
    """
    if not stations:
        return []

    planned_total, actual_total = leadtime_totals(stations)
    count = len(stations)
    kpi = MacroKpi(
        leadtime_min=actual_total / count,
        delta_min=abs(actual_total - planned_total) / count,
    )

    return [
        MacroAggregate(id=f"{MACRO_ID_PREFIX}{i}", label=macro, kpi=kpi)
        for i, macro in enumerate(group_by_macro(stations), start=1)
    ]


def build_graph(stations: Iterable[StationAggregate]) -> Graph:
    """Build the macro and detail graphs from ordered station aggregates."""
    detail_nodes = list(stations)
    macro_nodes = build_macro_aggregates(detail_nodes)

    graph = Graph(
        macro=GraphLevel(nodes=tuple(macro_nodes), edges=_chain_edges(macro_nodes)),
        detail=GraphLevel(nodes=tuple(detail_nodes), edges=_chain_edges(detail_nodes)),
    )
    logger.info(
        "Built graph: %d macro nodes, %d detail nodes",
        len(macro_nodes), len(detail_nodes),
    )
    return graph


def process_rows(rows: Iterable[Row], source_name: str | None = None) -> Snapshot:
    """Run the full aggregation over one import.

    Parameters
    ----------
    rows : Raw rows from load_cycle_time_rows().
    source_name : File name recorded on the snapshot.

    Returns
    -------
    Snapshot with stations, macro stages, graph, global KPIs and issues.
    Empty input gives empty collections and zero-valued KPIs.
    """
    rows = [dict(r) for r in rows]
    reader = FieldReader()

    grouped = group_rows_by_station(rows, reader)
    stations = _aggregate_groups(grouped, reader)

    issues = []
    for station, station_rows in zip(stations.values(), grouped.values()):
        issue = classify_issue(station, station_rows, reader)
        if issue is not None:
            issues.append(issue)

    graph = build_graph(stations.values())
    kpis = summarise_global_kpis(stations.values())

    logger.info(
        "Processed %d rows: %d stations, %d issues",
        len(rows), len(stations), len(issues),
    )
    return Snapshot(
        stations=tuple(stations.values()),
        macros=tuple(graph.macro.nodes),
        graph=graph,
        kpis=kpis,
        issues=tuple(issues),
        row_count=len(rows),
        source_name=source_name,
    )
