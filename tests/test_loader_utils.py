from datetime import datetime, time, timedelta

import numpy as np
import pytest

from prodflow_dashboard.loaders.utils import (
    FieldReader,
    is_present,
    normalise_header,
    parse_minutes,
)


@pytest.mark.parametrize(
    "raw, expected",
    [
        ("1:30:00", 90.0),
        ("0.5", 720.0),
        ("", 0.0),
        (None, 0.0),
        ("   ", 0.0),
        ("0:16:00", 16.0),
        ("2:00", 120.0),
        ("0:0:30", 0.5),
        (0.25, 360.0),
        (1, 1440.0),
    ],
)
def test_parse_minutes_formats(raw, expected):
    assert parse_minutes(raw) == pytest.approx(expected)


def test_parse_minutes_non_numeric_segments_count_as_zero():
    assert parse_minutes("abc:10:00") == pytest.approx(10.0)
    assert parse_minutes("abc") == 0.0
    assert parse_minutes("x:y:z") == 0.0


def test_parse_minutes_uses_leading_integer_of_each_field():
    assert parse_minutes("12abc") == pytest.approx(720.0)
    assert parse_minutes("1.5:30") == pytest.approx(90.0)


def test_parse_minutes_ignores_extra_fields():
    assert parse_minutes("1:00:00:99") == pytest.approx(60.0)


def test_parse_minutes_spreadsheet_types():
    assert parse_minutes(time(1, 30)) == pytest.approx(90.0)
    assert parse_minutes(time(0, 0, 30)) == pytest.approx(0.5)
    assert parse_minutes(timedelta(minutes=95)) == pytest.approx(95.0)
    assert parse_minutes(datetime(1899, 12, 31, 1, 0)) == pytest.approx(1500.0)
    assert parse_minutes(np.float64(0.5)) == pytest.approx(720.0)
    assert parse_minutes(np.int64(1)) == pytest.approx(1440.0)


def test_parse_minutes_degenerate_values_are_zero():
    assert parse_minutes(float("nan")) == 0.0
    assert parse_minutes("nan") == 0.0
    assert parse_minutes("inf") == 0.0
    assert parse_minutes("-0.5") == 0.0
    assert parse_minutes(True) == 0.0
    assert parse_minutes(datetime(1800, 1, 1)) == 0.0


def test_is_present():
    assert is_present("x")
    assert is_present(0)
    assert not is_present(None)
    assert not is_present("  ")
    assert not is_present(float("nan"))


def test_normalise_header_composes_unicode():
    decomposed = "Temps Pre\u0301vu "
    assert normalise_header(decomposed) == "Temps Prévu"


def test_field_reader_first_present_candidate_wins():
    reader = FieldReader()
    row = {"Nom": "", "Station": "Soudure", "Poste de travail": "Other"}
    assert reader.get(row, "station") == "Soudure"


def test_field_reader_matches_variant_headers():
    reader = FieldReader()
    row = {" Nom ": "Soudure", "Temps Pre\u0301vu": "0:10:00", "Temps_Réel": "0:12:00"}
    assert reader.get(row, "station") == "Soudure"
    assert reader.get(row, "planned_time") == "0:10:00"
    assert reader.get(row, "actual_time") == "0:12:00"


def test_field_reader_defaults_and_text():
    reader = FieldReader()
    assert reader.get({}, "macro_stage") is None
    assert reader.text({}, "macro_stage", "Unknown") == "Unknown"
    assert reader.text({"Nom": 12.0}, "station", "Unknown") == "12"
    assert reader.text({"Nom": "  Laser  "}, "station", "Unknown") == "Laser"


def test_field_reader_custom_candidates():
    reader = FieldReader({"station": ["Machine"]})
    assert reader.get({"Machine": "M1", "Nom": "ignored"}, "station") == "M1"
    with pytest.raises(KeyError):
        reader.get({}, "anomaly")


def test_field_reader_signature_contains_all_candidates():
    signature = FieldReader().signature()
    assert {"Nom", "Poste", "Temps Prévu", "Temps Réel"} <= signature


def test_field_reader_padded_duplicate_header_keeps_present_value():
    reader = FieldReader()
    assert reader.get({"Nom": "Laser", "Nom ": None}, "station") == "Laser"
    assert reader.get({"Nom ": "", "Nom": "Laser"}, "station") == "Laser"
    assert reader.get({"Nom": "Laser", " Nom": "Soudure"}, "station") == "Laser"
