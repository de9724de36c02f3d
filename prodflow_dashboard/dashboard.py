"""
Dashboard-ready output functions.

These are the entry points for the Streamlit front end and the JSON
export. Each function returns plain dicts or DataFrames suitable for
rendering cards, graphs, charts, and tables.
"""

import json
import logging
from pathlib import Path

import pandas as pd

from .kpis import (
    delta_statistics,
    macro_leadtime_table,
    savings_by_macro,
    savings_by_station,
    savings_summary,
    severity_distribution,
    station_cycle_table,
)
from .models import Snapshot

logger = logging.getLogger(__name__)

GRAPH_LEVELS = ("macro", "detail")

# Node spacing used by the graph views (screen units)
_MACRO_X_STEP = 300
_MACRO_Y = 100
_LANE_X_START = 50
_LANE_X_STEP = 250
_LANE_Y_START = 50
_LANE_Y_STEP = 100


def get_overview(snapshot: Snapshot) -> dict:
    """Values for the top-level KPI cards.

    Returns
    -------
    Dict with structure:
    {
        "source": "export.xlsx",
        "rows": 120, "stations": 8, "macro_stages": 3, "issues": 2,
        "leadtime_planned_min": ..., "leadtime_actual_min": ...,
        "delta_leadtime_min": ..., "wip_index_baseline": ...,
        "wip_index_scenario": ..., "delta_wip_index": ...,
        "mean_delta_min": ..., "max_delta_min": ...,
        "top_bottlenecks": [{"macro_stage": ..., "delta_leadtime_total_min": ...}],
    }
    """
    kpis = snapshot.kpis
    overview = {
        "source": snapshot.source_name,
        "rows": snapshot.row_count,
        "stations": len(snapshot.stations),
        "macro_stages": len(snapshot.macros),
        "issues": len(snapshot.issues),
        "leadtime_planned_min": kpis.leadtime_planned_global_min,
        "leadtime_actual_min": kpis.leadtime_actual_global_min,
        "delta_leadtime_min": kpis.delta_leadtime_global_min,
        "wip_index_baseline": kpis.wip_index_baseline,
        "wip_index_scenario": kpis.wip_index_scenario,
        "delta_wip_index": kpis.delta_wip_index,
        "top_bottlenecks": kpis.to_dict()["top_macro_bottlenecks"],
    }
    overview.update(delta_statistics(snapshot.stations))
    return overview


def get_issue_table(snapshot: Snapshot) -> pd.DataFrame:
    """Issue records as a table, in emission order."""
    columns = [
        "id", "station_id", "macro_stage", "issue_type", "severity",
        "delta_min", "piece_count", "estimated_cost", "anomaly_type",
        "cost_risk", "summary",
    ]
    if not snapshot.issues:
        return pd.DataFrame(columns=columns)
    return pd.DataFrame([issue.to_dict() for issue in snapshot.issues])[columns]


def get_graph_frames(snapshot: Snapshot, level: str) -> tuple[pd.DataFrame, pd.DataFrame]:
    """Nodes and edges of one graph level, with layout positions.

    Macro nodes sit on one row. Detail nodes are stacked in one lane per
    macro stage, lanes ordered by first appearance.

    Returns
    -------
    (nodes, edges). nodes has id, label, macro_stage, x, y and the level's
    KPI columns; edges has source, target.
    """
    if level not in GRAPH_LEVELS:
        raise ValueError(f"Unknown graph level '{level}', expected one of {GRAPH_LEVELS}")

    graph_level = getattr(snapshot.graph, level)
    edges = pd.DataFrame(
        [{"source": e.source, "target": e.target} for e in graph_level.edges],
        columns=["source", "target"],
    )

    rows = []
    if level == "macro":
        for index, node in enumerate(graph_level.nodes):
            rows.append({
                "id": node.id,
                "label": node.label,
                "macro_stage": node.label,
                "x": index * _MACRO_X_STEP,
                "y": _MACRO_Y,
                "leadtime_min": node.kpi.leadtime_min,
                "delta_min": node.kpi.delta_min,
            })
        columns = ["id", "label", "macro_stage", "x", "y", "leadtime_min", "delta_min"]
    else:
        lanes: dict[str, int] = {}
        depth: dict[str, int] = {}
        for node in graph_level.nodes:
            lane = lanes.setdefault(node.macro_stage, len(lanes))
            row_idx = depth.get(node.macro_stage, 0)
            depth[node.macro_stage] = row_idx + 1
            rows.append({
                "id": node.id,
                "label": node.label,
                "macro_stage": node.macro_stage,
                "x": _LANE_X_START + lane * _LANE_X_STEP,
                "y": _LANE_Y_START + row_idx * _LANE_Y_STEP,
                "planned_min": node.kpi.planned_avg_min,
                "actual_min": node.kpi.actual_avg_min,
                "delta_min": node.kpi.delta_min,
                "severity": node.kpi.severity,
                "piece_count": node.kpi.piece_count,
            })
        columns = [
            "id", "label", "macro_stage", "x", "y", "planned_min",
            "actual_min", "delta_min", "severity", "piece_count",
        ]

    return pd.DataFrame(rows, columns=columns), edges


def get_analytics(snapshot: Snapshot) -> dict:
    """All tables behind the analytics page."""
    savings = savings_by_station(snapshot.stations)
    return {
        "cycle_times": station_cycle_table(snapshot.stations),
        "macro_leadtime": macro_leadtime_table(snapshot.stations),
        "severity": severity_distribution(snapshot.stations),
        "savings": savings,
        "savings_by_macro": savings_by_macro(savings),
        "savings_summary": savings_summary(savings),
    }


def snapshot_to_json(snapshot: Snapshot) -> dict[str, str]:
    """Serialise a snapshot as the graph/kpis/issues JSON documents."""
    payload = snapshot.to_dict()
    return {
        "graph.json": json.dumps(payload["graph"], ensure_ascii=False, indent=2),
        "kpis.json": json.dumps(payload["kpis"], ensure_ascii=False, indent=2),
        "issues.json": json.dumps(payload["issues"], ensure_ascii=False, indent=2),
    }


def export_snapshot(snapshot: Snapshot, out_dir: str | Path) -> list[Path]:
    """Write graph.json, kpis.json and issues.json into out_dir."""
    out_dir = Path(out_dir)
    out_dir.mkdir(parents=True, exist_ok=True)

    written = []
    for filename, content in snapshot_to_json(snapshot).items():
        path = out_dir / filename
        path.write_text(content, encoding="utf-8")
        written.append(path)

    logger.info("Exported snapshot to %s", out_dir)
    return written
