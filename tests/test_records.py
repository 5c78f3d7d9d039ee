from __future__ import annotations

import json
import math

import pytest
import requests

from enrollmap.ingest.records import (
    DatasetError,
    Entity,
    load_dataset,
    load_school,
    process_records,
)
from enrollmap.settings import load_school_config, school_entry


def test_duplicate_ids_get_numbered_suffixes():
    raw = [{"id": "a"}, {"id": "b"}, {"id": "a"}, {"id": "a"}]
    assert [e.id for e in process_records(raw)] == ["a", "b", "a-1", "a-2"]


def test_numeric_coercion():
    (e,) = process_records([{
        "id": "x", "name": "X", "city": "C", "state": "S",
        "lat": "41.5", "lng": -87.25, "attending": "12", "accepted": None, "rate": "",
    }])
    assert e.lat == 41.5 and e.lng == -87.25
    assert e.attending == 12
    assert e.accepted == 0
    assert e.rate is None
    assert e.has_location and not e.has_rate


@pytest.mark.parametrize("value", [None, "", "  ", "n/a", True, float("nan"), float("inf")])
def test_unusable_rate_is_absent(value):
    (e,) = process_records([{"id": "x", "rate": value}])
    assert e.rate is None


def test_zero_rate_is_kept():
    (e,) = process_records([{"id": "x", "rate": 0}])
    assert e.rate == 0.0
    assert e.has_rate


def test_negative_counts_fall_back_to_zero():
    (e,) = process_records([{"id": "x", "attending": -3, "accepted": "lots"}])
    assert (e.attending, e.accepted) == (0, 0)


def test_non_object_rows_are_skipped(caplog):
    out = process_records([{"id": "a"}, ["not", "a", "record"], 42, {"id": "b"}])
    assert [e.id for e in out] == ["a", "b"]
    assert "Skipped 2" in caplog.text


@pytest.mark.parametrize(
    "lat,lng,expected",
    [(40.0, -88.0, True), (None, -88.0, False), (40.0, None, False),
     (0.0, 0.0, False), (0.0, 10.0, True), (math.inf, 1.0, False)],
)
def test_has_location(lat, lng, expected):
    e = Entity(id="x", name="", city="", state="", lat=lat, lng=lng)
    assert e.has_location is expected


def test_shipped_school_registry():
    cfg = load_school_config()
    assert cfg["SYCAMORE"]["name"] == "Sycamore High School"
    assert cfg["NEUQUA"]["name"] == "Neuqua Valley High School"


def test_unknown_school_raises_key_error():
    with pytest.raises(KeyError, match="NOPE"):
        school_entry("NOPE")
    with pytest.raises(KeyError):
        load_school("NOPE")


def test_load_shipped_sycamore_dataset():
    colleges = load_school("SYCAMORE")
    by_id = {c.id: c for c in colleges}
    assert len(colleges) == 14
    assert len(by_id) == 14
    assert by_id["uc"].name == "University of Cincinnati"
    assert by_id["uc-1"].name == "University of Cincinnati Blue Ash"
    assert by_id["xavier"].rate is None
    assert not by_id["intl"].has_location


def test_load_shipped_neuqua_dataset():
    colleges = load_school("NEUQUA")
    ids = [c.id for c in colleges]
    assert len(ids) == len(set(ids))
    assert "isu-1" in ids
    assert any(not c.has_location for c in colleges)


def test_load_dataset_rejects_bad_json(tmp_path):
    path = tmp_path / "broken.json"
    path.write_text("[{", encoding="utf-8")
    with pytest.raises(DatasetError):
        load_dataset(path)


def test_load_dataset_rejects_non_array(tmp_path):
    path = tmp_path / "object.json"
    path.write_text(json.dumps({"id": "a"}), encoding="utf-8")
    with pytest.raises(DatasetError, match="array"):
        load_dataset(path)


def test_load_dataset_missing_file(tmp_path):
    with pytest.raises(DatasetError):
        load_dataset(tmp_path / "absent.json")


def test_school_entry_without_file_is_dataset_error(tmp_path, monkeypatch):
    (tmp_path / "schools.json").write_text(
        json.dumps({"REMOTE": {"name": "Remote High", "url": "https://example.org/remote.json"}}),
        encoding="utf-8",
    )

    def no_network(*args, **kwargs):
        raise AssertionError("dataset loading must not touch the network")

    monkeypatch.setattr(requests, "get", no_network)
    monkeypatch.setattr(requests.Session, "get", no_network)
    with pytest.raises(DatasetError, match="no dataset file"):
        load_school("REMOTE", config_dir=tmp_path)
