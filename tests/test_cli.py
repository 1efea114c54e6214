import os
import signal
import subprocess
import sys

from mqbroker.cli import broker_dflt, broker_reload, broker_stop, main
from mqbroker.cmd_proc import CommandServer
from mqbroker.config import BrokerConfig


def test_broker_dflt_returns_zero(capsys):
    assert broker_dflt([]) == 0
    assert "Usage:" in capsys.readouterr().out


def test_main_unknown_command_prints_usage(capsys):
    assert main(["bogus"]) == 0
    assert "Usage:" in capsys.readouterr().out


def test_main_stop_with_extra_args_fails(capsys):
    assert main(["stop", "extra"]) == 1
    assert "Usage:" in capsys.readouterr().out


def test_stop_without_instance(tmp_path, capsys):
    assert broker_stop([], tmp_path / "none.pid") == 1
    assert "no running" in capsys.readouterr().err


def test_stop_terminates_running_instance(tmp_path):
    proc = subprocess.Popen([sys.executable, "-c", "import time; time.sleep(60)"])
    try:
        pid_file = tmp_path / "broker.pid"
        pid_file.write_text(str(proc.pid))
        assert broker_stop([], pid_file) == 0
        assert proc.wait(timeout=10) == -signal.SIGTERM
    finally:
        if proc.poll() is None:
            proc.kill()
            proc.wait()


def test_reload_without_instance(tmp_path, capsys):
    assert broker_reload(["--conf", "x.conf"], tmp_path / "none.pid", tmp_path / "c.ipc") == 1
    assert "not running" in capsys.readouterr().err


def _running_pid_file(tmp_path):
    pid_file = tmp_path / "self.pid"
    pid_file.write_text(str(os.getpid()))
    return pid_file


def test_reload_bad_option(tmp_path, capsys):
    pid_file = _running_pid_file(tmp_path)
    assert broker_reload(["--bogus"], pid_file, tmp_path / "c.ipc") == 1
    assert "Cannot parse" in capsys.readouterr().err


def test_reload_unreachable_broker(tmp_path):
    pid_file = _running_pid_file(tmp_path)
    assert broker_reload([], pid_file, tmp_path / "absent.ipc") == 1


def test_reload_through_command_server(tmp_path, capsys):
    pid_file = _running_pid_file(tmp_path)
    conf_file = tmp_path / "broker.conf"
    conf_file.write_text("")
    config = BrokerConfig()
    loaded = []

    def loader(path):
        loaded.append(path)
        return BrokerConfig(property_size=77)

    ipc = tmp_path / "c.ipc"
    with CommandServer(config, loader, ipc):
        assert broker_reload(["--conf", str(conf_file)], pid_file, ipc) == 0
    assert "reload succeed" in capsys.readouterr().out
    assert config.property_size == 77
    assert loaded == [str(conf_file)]


def test_reload_without_conf_file_reports_error(tmp_path, capsys):
    pid_file = _running_pid_file(tmp_path)
    config = BrokerConfig()
    ipc = tmp_path / "c.ipc"
    with CommandServer(config, lambda path: BrokerConfig(), ipc):
        assert broker_reload([], pid_file, ipc) == 0
    assert "conf_file is not specified" in capsys.readouterr().out