"""
Entry point tests: argument parsing, log pruning, config failures.

Usage:
    pytest test_run_doorbell.py
"""

from pathlib import Path

import run_doorbell


def test_remove_old_logs_keeps_newest(tmp_path):
    names = [f"{1700000000 + i}-1-cat-doorbell.log" for i in range(13)]
    for name in names:
        (tmp_path / name).write_text("")

    removed = run_doorbell.remove_old_logs(tmp_path, keep=10)

    assert [p.name for p in removed] == names[:3]
    assert sorted(p.name for p in tmp_path.iterdir()) == names[3:]


def test_remove_old_logs_under_limit(tmp_path):
    (tmp_path / "1-1-cat-doorbell.log").write_text("")
    assert run_doorbell.remove_old_logs(tmp_path) == []


def test_parse_args_defaults(monkeypatch, tmp_path):
    monkeypatch.setenv("XDG_CONFIG_HOME", str(tmp_path / "config"))
    monkeypatch.setenv("XDG_STATE_HOME", str(tmp_path / "state"))

    args = run_doorbell.parse_args([])

    assert args.config == tmp_path / "config" / "cat-doorbell" / "config.yaml"
    assert args.log_dir == tmp_path / "state" / "cat-doorbell" / "logs"
    assert args.log_level == "info"
    assert not args.no_tray


def test_parse_args_overrides():
    args = run_doorbell.parse_args(["-c", "doorbell.yaml", "--log-level", "debug", "--no-tray"])

    assert args.config == Path("doorbell.yaml")
    assert args.log_level == "debug"
    assert args.no_tray


def test_setup_logging_creates_log_file(tmp_path):
    log_dir = tmp_path / "logs"
    run_doorbell.setup_logging(log_dir)

    files = list(log_dir.iterdir())
    assert len(files) == 1
    assert files[0].name.endswith("-cat-doorbell.log")


def teardown_function(function):
    import logging

    root = logging.getLogger()
    for handler in list(root.handlers):
        if isinstance(handler, logging.FileHandler):
            root.removeHandler(handler)
            handler.close()
