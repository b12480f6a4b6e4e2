"""Tests for configuration, the simulation run and the HTTP app."""

import json
from pathlib import Path

import pydantic
import pytest
from starlette.testclient import TestClient

from node_placement_sim import config, server, simulation
from node_placement_sim.models import Job
from node_placement_sim.queues import Policy
from node_placement_sim.workload import JobSubmission


@pytest.fixture(autouse=True)
def _no_logging_setup(monkeypatch):
    """Keep structlog at its defaults so log capture keeps working."""
    monkeypatch.setattr(config, "configure_logging", lambda level: None)


@pytest.fixture
def small_config(tmp_path: Path) -> config.SimulatorConfig:
    """Three default nodes and the sample workload, reporting into tmp_path."""
    return config.SimulatorConfig(
        node_count=3,
        report_path=str(tmp_path / "report.csv"),
    )


# ---------------------------------------------------------------------------
# SimulatorConfig / load_config
# ---------------------------------------------------------------------------


def test_config_defaults():
    """Defaults match the reference run."""
    cfg = config.SimulatorConfig()
    assert cfg.node_count == 128
    assert cfg.cores_per_node == 24
    assert cfg.memory_per_node == 64
    assert cfg.drain_order == [
        Policy.FCFS,
        Policy.WEIGHTED_SMALLEST,
        Policy.SHORTEST_DURATION,
    ]
    assert cfg.jobs_file is None
    assert cfg.report_path == "utilization_report.csv"


@pytest.mark.parametrize("field", ["node_count", "cores_per_node", "memory_per_node"])
def test_config_rejects_non_positive_sizes(field: str):
    """Pool dimensions must be positive."""
    with pytest.raises(pydantic.ValidationError):
        config.SimulatorConfig(**{field: 0})


def test_load_config_from_file(tmp_path: Path):
    """Values are read from a JSON file."""
    path = tmp_path / "config.json"
    path.write_text(
        json.dumps({"node_count": 4, "drain_order": ["shortest_duration", "fcfs"]}),
    )
    cfg = config.load_config(str(path))
    assert cfg.node_count == 4
    assert cfg.drain_order == [Policy.SHORTEST_DURATION, Policy.FCFS]


def test_load_config_missing_file(tmp_path: Path):
    """A missing config file raises FileNotFoundError."""
    with pytest.raises(FileNotFoundError, match="Configuration file not found"):
        config.load_config(str(tmp_path / "missing.json"))


def test_load_config_invalid_policy(tmp_path: Path):
    """Unknown policies in drain_order fail validation."""
    path = tmp_path / "config.json"
    path.write_text(json.dumps({"drain_order": ["lottery"]}))
    with pytest.raises(pydantic.ValidationError):
        config.load_config(str(path))


# ---------------------------------------------------------------------------
# run_simulation
# ---------------------------------------------------------------------------


def test_run_simulation_sample_workload(small_config: config.SimulatorConfig):
    """The sample jobs all fit into three nodes."""
    scheduler = simulation.run_simulation(small_config)
    assert len(scheduler.nodes) == 3
    assert scheduler.pending == []
    assert scheduler.nodes[2].job_ids == [3]


def test_run_simulation_explicit_submissions(small_config: config.SimulatorConfig):
    """Given submissions replace the configured workload."""
    submissions = [JobSubmission(Job(9, 0, 30, 1, 1), Policy.SHORTEST_DURATION)]
    scheduler = simulation.run_simulation(small_config, submissions)
    assert [job.id for job in scheduler.unschedulable] == [9]


def test_run_simulation_jobs_file(tmp_path: Path):
    """jobs_file is loaded when no submissions are given."""
    jobs_path = tmp_path / "jobs.json"
    jobs_path.write_text(
        json.dumps(
            {
                "jobs": [
                    {"id": 1, "cores_required": 6, "memory_required": 6, "exec_time": 1},
                    {
                        "id": 2,
                        "cores_required": 6,
                        "memory_required": 6,
                        "exec_time": 1,
                        "policy": "weighted_smallest",
                    },
                ],
            },
        ),
    )
    cfg = config.SimulatorConfig(
        node_count=1,
        cores_per_node=10,
        memory_per_node=10,
        jobs_file=str(jobs_path),
        drain_order=[Policy.WEIGHTED_SMALLEST, Policy.FCFS],
    )
    scheduler = simulation.run_simulation(cfg)
    assert [job.id for job in scheduler.pending] == [1]


# ---------------------------------------------------------------------------
# HTTP app
# ---------------------------------------------------------------------------


def test_metrics_endpoint(small_config: config.SimulatorConfig):
    """GET /metrics serves the simulation metrics."""
    client = TestClient(server.create_simulator(small_config))
    response = client.get("/metrics")
    assert response.status_code == 200
    assert response.headers["content-type"].startswith("text/plain")
    assert "placement_cpus_total 72.0" in response.text
    assert "placement_jobs_allocated 5.0" in response.text


def test_report_endpoint(small_config: config.SimulatorConfig):
    """GET /report serves the utilization CSV."""
    client = TestClient(server.create_simulator(small_config))
    response = client.get("/report")
    assert response.status_code == 200
    assert response.headers["content-type"].startswith("text/csv")
    assert response.text.splitlines() == [
        "NodeID,CPU Utilization (%),Memory Utilization (%)",
        "0,75.00,81.25",
        "1,70.83,87.50",
        "2,83.33,75.00",
    ]


def test_custom_metrics_path(tmp_path: Path):
    """metrics_path moves the metrics endpoint."""
    cfg = config.SimulatorConfig(
        node_count=3,
        metrics_path="/prom",
        report_path=str(tmp_path / "report.csv"),
    )
    client = TestClient(server.create_simulator(cfg))
    assert client.get("/prom").status_code == 200
    assert client.get("/metrics").status_code == 404


def test_create_app_reads_env_config(tmp_path: Path, monkeypatch):
    """create_app falls back to the config path in the environment."""
    path = tmp_path / "config.json"
    report_path = str(tmp_path / "report.csv")
    path.write_text(json.dumps({"node_count": 2, "report_path": report_path}))
    monkeypatch.setenv(config.CONFIG_ENV_VAR, str(path))
    client = TestClient(server.create_app())
    assert len(client.get("/report").text.splitlines()) == 3


def test_create_app_defaults_without_config(tmp_path: Path, monkeypatch):
    """Without any config the reference pool is simulated."""
    monkeypatch.delenv(config.CONFIG_ENV_VAR, raising=False)
    monkeypatch.chdir(tmp_path)
    client = TestClient(server.create_app())
    assert len(client.get("/report").text.splitlines()) == 129
    assert (tmp_path / "utilization_report.csv").exists()


def test_create_simulator_writes_report(small_config: config.SimulatorConfig):
    """The report file matches what /report serves right after the run."""
    client = TestClient(server.create_simulator(small_config))
    written = Path(small_config.report_path).read_text().splitlines()
    assert written == [
        "NodeID,CPU Utilization (%),Memory Utilization (%)",
        "0,75.00,81.25",
        "1,70.83,87.50",
        "2,83.33,75.00",
    ]
    assert client.get("/report").text.splitlines() == written
