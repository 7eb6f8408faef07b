"""Unit tests for metrics, logging setup, run manifest and CSV output."""

import csv
import logging

from sharpcap.ops import InMemoryMetricsRecorder, NullMetricsRecorder, configure_logging
from sharpcap.reporting import write_passes_csv, write_picks_csv, write_rows_csv
from sharpcap.runtime import RunManifest
from sharpcap.schema import PassKind, PassRecord, Pick


class TestMetrics:
    def test_counters_and_timings(self):
        metrics = InMemoryMetricsRecorder()
        metrics.increment("games.total")
        metrics.increment("games.total", 2)
        for value in (30.0, 10.0, 20.0):
            metrics.timing("game", value)

        snapshot = metrics.snapshot()
        assert snapshot["counters"] == {"games.total": 3}
        assert snapshot["timings"]["game"] == {
            "count": 3,
            "avg_ms": 20.0,
            "p50_ms": 20.0,
            "max_ms": 30.0,
        }
        assert metrics.counter("missing") == 0

    def test_null_recorder(self):
        metrics = NullMetricsRecorder()
        metrics.increment("x")
        metrics.timing("y", 1.0)
        assert metrics.snapshot() == {"counters": {}, "timings": {}}


def test_configure_logging_reads_level(monkeypatch):
    monkeypatch.setenv("SHARPCAP_LOG_LEVEL", "warning")
    configure_logging(run_id="abc")
    root = logging.getLogger()
    assert root.level == logging.WARNING
    assert "[run_id=abc]" in root.handlers[0].formatter._fmt


def test_manifest_to_dict():
    manifest = RunManifest(run_id="r1", policy="strict", counts={"picks": 2})
    payload = manifest.to_dict()
    assert payload["run_id"] == "r1"
    assert payload["finished_at"] is None
    assert payload["counts"] == {"picks": 2}
    assert payload["started_at"].endswith("+00:00")


class TestCsvOutput:
    def test_union_of_columns(self, tmp_path):
        path = tmp_path / "nested" / "rows.csv"
        write_rows_csv([{"a": 1}, {"a": 2, "c": 3, "b": 4}], str(path))
        with open(path, newline="", encoding="utf-8") as handle:
            reader = csv.DictReader(handle)
            assert reader.fieldnames == ["a", "b", "c"]
            rows = list(reader)
        assert rows[0]["b"] == ""
        assert rows[1]["c"] == "3"

    def test_empty_rows_write_empty_file(self, tmp_path):
        path = tmp_path / "empty.csv"
        write_rows_csv([], str(path))
        assert path.read_text(encoding="utf-8") == ""

    def test_picks_and_passes(self, tmp_path):
        pick = Pick(
            game_id="g1",
            pick_type="spread",
            selection="Boston Celtics -5.5",
            odds=-110,
            confidence=8.456,
            units=2,
            policy="baseline",
            factors=[{"name": "Net Rating", "contribution": 1.25}],
            reasoning=["one", "two"],
        )
        write_picks_csv([pick], str(tmp_path / "picks.csv"))
        write_passes_csv(
            [PassRecord("g2", "no edge", "threshold", PassKind.NO_EDGE)],
            str(tmp_path / "passes.csv"),
        )

        with open(tmp_path / "picks.csv", newline="", encoding="utf-8") as handle:
            row = next(csv.DictReader(handle))
        assert row["confidence"] == "8.46"
        assert row["top_factors"] == "Net Rating=+1.25"
        assert row["reasoning"] == "one | two"

        with open(tmp_path / "passes.csv", newline="", encoding="utf-8") as handle:
            row = next(csv.DictReader(handle))
        assert row == {"game_id": "g2", "stage": "threshold", "kind": "no_edge", "reason": "no edge"}
