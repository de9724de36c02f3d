import pytest


@pytest.fixture
def make_row():
    """Build a raw export row with the usual French headers."""

    def _make(name, stage, planned, actual, **extra):
        row = {
            "Nom": name,
            "Poste": stage,
            "Temps Prévu": planned,
            "Temps Réel": actual,
        }
        row.update(extra)
        return row

    return _make


@pytest.fixture
def two_station_rows(make_row):
    return [
        make_row("A", "Stage1", "0:10:00", "0:16:00"),
        make_row("B", "Stage1", "0:05:00", "0:05:00"),
    ]
