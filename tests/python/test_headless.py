import csv
import json

from huntsim.headless import run_headless
from huntsim.sim.core.config import SimulationConfig

HEADER = [
    "tick",
    "sim_time",
    "hares",
    "wolves",
    "deer",
    "groups",
    "projectiles",
    "spawned",
    "eaten",
    "shot",
    "starved",
    "tick_ms",
]


def _read_csv(path):
    with path.open(newline="") as handle:
        return list(csv.reader(handle))


def test_headless_log_header_and_rows(tmp_path):
    log_path = tmp_path / "run.csv"
    metrics = run_headless(steps=3, seed=1, log_path=log_path, deterministic_log=True)

    rows = _read_csv(log_path)
    assert rows[0] == HEADER
    assert len(rows) == 4
    idx = {name: i for i, name in enumerate(HEADER)}
    assert [int(row[idx["tick"]]) for row in rows[1:]] == [0, 1, 2]
    assert all(row[idx["tick_ms"]] == "0.000" for row in rows[1:])
    # One hare per tick; the first deer group arrives on tick 0.
    assert 1 <= int(rows[1][idx["hares"]]) + int(rows[1][idx["eaten"]])
    assert int(rows[1][idx["hares"]]) <= 1
    assert int(rows[1][idx["groups"]]) == 1
    assert metrics is not None
    assert metrics.tick == 2


def test_deterministic_logs_match_for_same_seed(tmp_path):
    first = tmp_path / "first.csv"
    second = tmp_path / "second.csv"

    run_headless(steps=60, seed=4, log_path=first, deterministic_log=True)
    run_headless(steps=60, seed=4, log_path=second, deterministic_log=True)

    assert first.read_text() == second.read_text()


def test_summary_json(tmp_path):
    summary_path = tmp_path / "summary.json"
    config = SimulationConfig()
    config.deer.group_number = 0

    run_headless(
        steps=12,
        seed=8,
        log_path=None,
        deterministic_log=True,
        summary_path=summary_path,
        config=config,
    )

    summary = json.loads(summary_path.read_text())
    assert summary["steps"] == 12
    assert summary["seed"] == 8
    assert summary["deterministic_log"] is True
    assert summary["tick_ms"]["max"] == 0.0
    assert 0 < summary["population"]["max"] <= 10 + 3
    assert summary["totals"]["spawned"] >= 13
    assert set(summary["population"]) == {"min", "max", "avg", "p50", "p90"}
