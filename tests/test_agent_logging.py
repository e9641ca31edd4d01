import json
from pathlib import Path

from if_change_then_change import logging as run_logging


def test_run_logger_creates_files(tmp_path: Path):
    logger = run_logging.RunLogger(base_dir=tmp_path, run_id="demo")
    logger.log_json("diagnostics", [{"path": "a.sh", "message": "m"}])
    logger.log_text("summary", "touched=1\nerrors=0")
    run_dir = tmp_path / "demo"
    assert run_dir.exists()
    assert (run_dir / "diagnostics.json").read_text().strip().startswith("[")
    assert "touched=1" in (run_dir / "summary.txt").read_text()


def test_run_logger_events_stream_to_file(tmp_path: Path):
    logger = run_logging.RunLogger(base_dir=tmp_path, run_id="demo2", stream=False)
    logger.log_event("unit.test", path="a.sh", hop=0)
    events = (tmp_path / "demo2" / "events.ndjson").read_text().splitlines()
    assert events and "\"kind\":\"unit.test\"" in events[0]
    assert json.loads(events[0])["data"] == {"path": "a.sh", "hop": 0}


def test_run_logger_without_dir_keeps_events_in_memory(tmp_path: Path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    logger = run_logging.RunLogger(stream=False)
    logger.log_event("run.start")
    assert logger.log_json("diagnostics", []) is None
    assert logger.events_path is None
    assert [event["kind"] for event in logger.events] == ["run.start"]
    assert list(tmp_path.iterdir()) == []


def test_run_logger_stream_env_var(monkeypatch, capsys):
    monkeypatch.setenv("ICTC_LOG_STREAM", "yes")
    logger = run_logging.RunLogger()
    logger.log_event("index.file", path="b.sh", hop=1)
    captured = capsys.readouterr()
    assert captured.out == ""
    assert "index.file path=b.sh hop=1" in captured.err
