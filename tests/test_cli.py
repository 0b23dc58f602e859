"""Tests for the ptp-reflector command line."""

import pytest

from ptpreflect import cli
from ptpreflect.multicast_port import BindError


class StubEngine:
    instances = []
    open_error = None

    def __init__(self, config, logger=None):
        self.config = config
        self.logger = logger
        self.closed = False
        StubEngine.instances.append(self)

    def open(self):
        if StubEngine.open_error is not None:
            raise StubEngine.open_error

    def run(self):
        raise KeyboardInterrupt

    def close(self):
        self.closed = True

    def summary(self):
        return "event: rx=0 tx=0 drop=0 err=0"


@pytest.fixture
def stub_engine(monkeypatch):
    StubEngine.instances = []
    StubEngine.open_error = None
    monkeypatch.setattr(cli, "ReflectorEngine", StubEngine)
    return StubEngine


def test_ctrl_c_exits_cleanly(stub_engine):
    assert cli.main([]) == 0
    engine = stub_engine.instances[0]
    assert engine.closed
    assert engine.config.log_level == "INFO"


def test_flags_override_config_file(stub_engine, tmp_path):
    path = tmp_path / "reflector.yaml"
    path.write_text("log_level: WARNING\nmulticast_loop: false\n", encoding="utf-8")

    assert cli.main(["--config", str(path), "--multicast-loop", "--dump-packets", "--log-level", "debug"]) == 0
    config = stub_engine.instances[0].config
    assert config.log_level == "DEBUG"
    assert config.multicast_loop is True
    assert config.dump_packets is True


def test_config_file_values_kept_without_flags(stub_engine, tmp_path):
    path = tmp_path / "reflector.yaml"
    path.write_text("multicast_loop: true\n", encoding="utf-8")

    assert cli.main(["--config", str(path)]) == 0
    assert stub_engine.instances[0].config.multicast_loop is True


def test_startup_failure_exit_code(stub_engine, caplog):
    stub_engine.open_error = BindError(319, "could not bind event socket: Permission denied")
    assert cli.main([]) == 1
    assert "Startup failed" in caplog.text
    assert "Permission denied" in caplog.text


def test_bad_config_exit_code(stub_engine, tmp_path):
    assert cli.main(["--config", str(tmp_path / "missing.yaml")]) == 2
    assert stub_engine.instances == []


def test_invalid_log_level_rejected_by_argparse(stub_engine):
    with pytest.raises(SystemExit):
        cli.main(["--log-level", "chatty"])
