from prodflow_dashboard.simulator import generate_cycle_time_rows
from prodflow_dashboard.transforms import process_rows


def test_rows_shape():
    rows = generate_cycle_time_rows()
    assert len(rows) == 8 * 12
    assert set(rows[0]) == {
        "Nom", "Poste", "Temps Prévu", "Temps Réel",
        "Coût/Risque", "Aléas Industriels", "Cause Potentielle",
    }
    assert rows[0]["Temps Prévu"] == "0:12:00"


def test_same_seed_same_rows():
    assert generate_cycle_time_rows(seed=7) == generate_cycle_time_rows(seed=7)
    assert generate_cycle_time_rows(seed=7) != generate_cycle_time_rows(seed=8)


def test_simulated_line_has_a_bottleneck():
    snapshot = process_rows(generate_cycle_time_rows())

    assert len(snapshot.stations) == 8
    assert [m.label for m in snapshot.macros] == [
        "Découpe", "Usinage", "Assemblage", "Contrôle",
    ]
    by_station = {
        s.label: i for s in snapshot.stations for i in snapshot.issues if i.station_id == s.id
    }
    assert by_station["Fraisage CN"].issue_type == "bottleneck"
    assert by_station["Pré-assemblage"].issue_type == "high_risk_part"
    assert "Panne broche" in by_station["Fraisage CN"].summary
