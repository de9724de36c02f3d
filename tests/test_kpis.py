import pandas as pd
import pytest

from prodflow_dashboard.kpis import (
    delta_statistics,
    leadtime_totals,
    macro_leadtime_table,
    rank_macro_bottlenecks,
    round_half_up,
    savings_by_macro,
    savings_by_station,
    savings_summary,
    severity_distribution,
    station_cycle_table,
    summarise_global_kpis,
)
from prodflow_dashboard.transforms import aggregate_stations


@pytest.fixture
def stations(make_row):
    rows = [
        make_row("Laser", "Découpe", "0:10:00", "0:12:00"),
        make_row("Laser", "Découpe", "0:10:00", "0:12:00"),
        make_row("Fraisage", "Usinage", "0:20:00", "0:32:00"),
        make_row("Perçage", "Usinage", "0:08:00", "0:07:00"),
        make_row("Contrôle", "Qualité", "0:05:00", "0:11:00"),
    ]
    return list(aggregate_stations(rows).values())


def test_round_half_up():
    assert round_half_up(2.5) == 3
    assert round_half_up(3.5) == 4
    assert round_half_up(2.4999) == 2
    assert round_half_up(-2.5) == -2
    assert round_half_up(0.0) == 0
    assert round_half_up(float("inf")) == 0
    assert round_half_up(float("nan")) == 0


def test_leadtime_totals_are_piece_weighted(stations):
    planned, actual = leadtime_totals(stations)
    # Laser counts twice
    assert planned == pytest.approx(10 * 2 + 20 + 8 + 5)
    assert actual == pytest.approx(12 * 2 + 32 + 7 + 11)


def test_summarise_global_kpis(stations):
    summary = summarise_global_kpis(stations)

    assert summary.leadtime_planned_global_min == 53
    assert summary.leadtime_actual_global_min == 74
    assert summary.delta_leadtime_global_min == 21
    assert summary.wip_index_baseline == 18_400
    assert summary.wip_index_scenario == 15_200
    assert summary.delta_wip_index == 3_200


def test_top_bottlenecks_ranked_by_summed_delta(stations):
    top = rank_macro_bottlenecks(stations)
    # Usinage: 12 - 1 = 11, Qualité: 6, Découpe: 2
    assert [(b.macro_stage, b.delta_leadtime_total_min) for b in top] == [
        ("Usinage", 11), ("Qualité", 6), ("Découpe", 2),
    ]


def test_top_bottlenecks_ties_keep_first_seen_order(make_row):
    rows = [
        make_row("A", "S1", "0:10:00", "0:13:00"),
        make_row("B", "S2", "0:10:00", "0:14:00"),
        make_row("C", "S3", "0:10:00", "0:13:00"),
        make_row("D", "S4", "0:10:00", "0:13:00"),
    ]
    top = rank_macro_bottlenecks(aggregate_stations(rows).values())
    assert [b.macro_stage for b in top] == ["S2", "S1", "S3"]


def test_top_bottlenecks_truncated_to_three(make_row):
    rows = [make_row(f"St{i}", f"S{i}", "0:01:00", f"0:0{i}:00") for i in range(1, 6)]
    assert len(rank_macro_bottlenecks(aggregate_stations(rows).values())) == 3


def test_station_cycle_table(stations):
    table = station_cycle_table(stations)
    assert list(table["station_id"]) == ["P1", "P2", "P3", "P4"]
    assert table.loc[1, "delta_min"] == pytest.approx(12.0)
    assert table.loc[1, "severity"] == "Critical"


def test_macro_leadtime_table(stations):
    table = macro_leadtime_table(stations).set_index("macro_stage")
    assert list(table.index) == ["Découpe", "Usinage", "Qualité"]
    assert table.loc["Usinage", "leadtime_min"] == pytest.approx(39.0)
    assert table.loc["Usinage", "delta_min"] == pytest.approx(11.0)
    assert table.loc["Usinage", "station_count"] == 2


def test_severity_distribution(stations):
    table = severity_distribution(stations)
    assert list(zip(table["severity"], table["count"])) == [
        ("Minor", 2), ("Critical", 1), ("Major", 1),
    ]


def test_delta_statistics(stations):
    stats = delta_statistics(stations)
    assert stats["mean_delta_min"] == pytest.approx((2 + 12 - 1 + 6) / 4)
    assert stats["max_delta_min"] == pytest.approx(12.0)
    assert delta_statistics([]) == {"mean_delta_min": 0.0, "max_delta_min": 0.0}


def test_savings_never_negative(stations):
    savings = savings_by_station(stations)
    assert (savings["saved_min"] >= 0).all()
    percage = savings.set_index("station").loc["Perçage"]
    assert percage["saved_min"] == 0.0
    assert percage["saved_eur"] == 0.0


def test_savings_euros_use_hourly_rate(stations):
    savings = savings_by_station(stations, hourly_rate=60.0).set_index("station")
    assert savings.loc["Fraisage", "saved_eur"] == pytest.approx(12.0)


def test_savings_summary(stations):
    summary = savings_summary(savings_by_station(stations, hourly_rate=60.0))
    assert summary["total_saved_min"] == pytest.approx(20.0)
    assert summary["total_saved_eur"] == pytest.approx(20.0)
    assert summary["avg_saved_eur"] == pytest.approx(5.0)
    assert summary["max_saved_eur"] == pytest.approx(12.0)


def test_savings_summary_empty():
    assert savings_summary(savings_by_station([])) == {
        "total_saved_min": 0.0,
        "total_saved_eur": 0.0,
        "avg_saved_eur": 0.0,
        "max_saved_eur": 0.0,
    }


def test_savings_by_macro(stations):
    table = savings_by_macro(savings_by_station(stations, hourly_rate=60.0))
    assert list(table["macro_stage"]) == ["Découpe", "Usinage", "Qualité"]
    assert table.set_index("macro_stage").loc["Usinage", "saved_min"] == pytest.approx(12.0)


def test_savings_by_macro_groups_blank_stage_as_other():
    savings = pd.DataFrame([
        {"station": "A", "macro_stage": "", "planned_min": 1.0, "actual_min": 2.0,
         "saved_min": 1.0, "saved_eur": 1.0},
        {"station": "B", "macro_stage": None, "planned_min": 1.0, "actual_min": 3.0,
         "saved_min": 2.0, "saved_eur": 2.0},
    ])
    table = savings_by_macro(savings)
    assert list(table["macro_stage"]) == ["Other"]
    assert table.loc[0, "saved_min"] == pytest.approx(3.0)
