"""
Data model produced by one aggregation run.

Every entity is immutable and rebuilt from scratch on each import.
`to_dict()` yields the plain structures consumed by the front end and
written by the JSON export.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass, field


@dataclass(frozen=True)
class StationKpi:
    planned_avg_min: float
    actual_avg_min: float
    delta_min: float
    severity: str
    piece_count: int


@dataclass(frozen=True)
class StationAggregate:
    id: str
    label: str
    macro_stage: str
    kpi: StationKpi

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "label": self.label,
            "macro": self.macro_stage,
            "kpi": asdict(self.kpi),
        }


@dataclass(frozen=True)
class MacroKpi:
    leadtime_min: float
    delta_min: float


@dataclass(frozen=True)
class MacroAggregate:
    id: str
    label: str
    kpi: MacroKpi

    def to_dict(self) -> dict:
        return {"id": self.id, "label": self.label, "kpi": asdict(self.kpi)}


@dataclass(frozen=True)
class Edge:
    source: str
    target: str


@dataclass(frozen=True)
class GraphLevel:
    nodes: tuple = ()
    edges: tuple[Edge, ...] = ()

    def to_dict(self) -> dict:
        return {
            "nodes": [node.to_dict() for node in self.nodes],
            "edges": [asdict(edge) for edge in self.edges],
        }


@dataclass(frozen=True)
class Graph:
    macro: GraphLevel = field(default_factory=GraphLevel)
    detail: GraphLevel = field(default_factory=GraphLevel)

    def to_dict(self) -> dict:
        return {"macro": self.macro.to_dict(), "detail": self.detail.to_dict()}


@dataclass(frozen=True)
class IssueRecord:
    id: str
    level: str
    station_id: str
    macro_stage: str
    issue_type: str
    delta_min: float
    piece_count: int
    severity: str
    estimated_cost: float
    experience_level: str
    anomaly_type: str
    cost_risk: str
    summary: str

    def to_dict(self) -> dict:
        return asdict(self)


@dataclass(frozen=True)
class MacroBottleneck:
    macro_stage: str
    delta_leadtime_total_min: int


@dataclass(frozen=True)
class GlobalKpiSummary:
    leadtime_planned_global_min: int
    leadtime_actual_global_min: int
    delta_leadtime_global_min: int
    wip_index_baseline: int
    wip_index_scenario: int
    delta_wip_index: int
    top_macro_bottlenecks: tuple[MacroBottleneck, ...] = ()

    def to_dict(self) -> dict:
        return asdict(self) | {
            "top_macro_bottlenecks": [asdict(b) for b in self.top_macro_bottlenecks],
        }


@dataclass(frozen=True)
class Snapshot:
    """Everything one file import produces."""

    stations: tuple[StationAggregate, ...]
    macros: tuple[MacroAggregate, ...]
    graph: Graph
    kpis: GlobalKpiSummary
    issues: tuple[IssueRecord, ...]
    row_count: int
    source_name: str | None = None

    def to_dict(self) -> dict:
        return {
            "graph": self.graph.to_dict(),
            "kpis": self.kpis.to_dict(),
            "issues": [issue.to_dict() for issue in self.issues],
        }
