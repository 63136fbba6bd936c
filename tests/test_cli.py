import importlib.machinery
import json
import logging
import sys
import types
from pathlib import Path

import pytest

from specsim.simulation.config import SimulatorConfig
from specsim.utils.helpers import load_config

SCRIPT = Path(__file__).resolve().parents[1] / "scripts" / "run_scenarios.py"


@pytest.fixture
def cli(monkeypatch):
    loader = importlib.machinery.SourceFileLoader("run_scenarios", str(SCRIPT))
    module = types.ModuleType(loader.name)
    module.__file__ = str(SCRIPT)
    loader.exec_module(module)
    monkeypatch.setattr(module, 'setup_logging', lambda level: logging.getLogger("specsim"))
    return module


def invoke(cli, monkeypatch, *args):
    monkeypatch.setattr(sys, 'argv', ['run_scenarios.py', *args])
    cli.main()


def saved(directory, suffix):
    paths = sorted(Path(directory).glob(f"*{suffix}"))
    assert len(paths) == 1
    return paths[0]


def test_list_prints_catalog(cli, monkeypatch, capsys):
    invoke(cli, monkeypatch, '--list')
    out = capsys.readouterr().out

    assert "branchTrain" in out and "reverseTrain" in out and "steadyState" in out
    assert "TTTT" in out and "NNNN" in out
    assert "Branch training & mistrain" in out
    assert "Pipeline:" not in out


def test_list_reads_scenarios_file(cli, monkeypatch, capsys, tmp_path):
    path = tmp_path / "scenarios.yaml"
    path.write_text(
        "scenarios:\n"
        "  flip:\n"
        "    name: Flip once\n"
        "    training: [true, false]\n"
        "    trigger: true\n"
    )

    invoke(cli, monkeypatch, '--list', '--scenarios-file', str(path))
    out = capsys.readouterr().out

    assert "flip" in out and "TN" in out and "Flip once" in out
    assert "branchTrain" not in out


def test_single_run_renders_and_saves_results(cli, monkeypatch, capsys, tmp_path):
    invoke(cli, monkeypatch, '--scenario', 'branchTrain', '--seed', '3',
           '--output', str(tmp_path))
    out = capsys.readouterr().out

    assert "Pipeline:" in out and "Cache:" in out and "Timings:" in out
    assert "> Speculative path observed" in out
    assert "Scenario: Branch training & mistrain (baseline)" in out

    result = json.loads(saved(tmp_path, ".json").read_text())
    assert result['measurements'] == {'prime': 60.0, 'speculate': 20.0, 'probe': 20.0}
    assert result['mispredict'] is True
    assert result['defended'] is False
    assert result['detection'] is None

    assert load_config(saved(tmp_path, ".yaml")) == result


def test_disable_turns_off_mitigations(cli, monkeypatch, tmp_path):
    invoke(cli, monkeypatch, '--defended', '--disable', 'fence',
           '--disable', 'constant_time', '--seed', '3', '-o', str(tmp_path))

    result = json.loads(saved(tmp_path, ".json").read_text())
    assert result['defended'] is True
    assert result['defence_state'] == {
        'constant_time': False,
        'jitter': True,
        'fence': False,
        'clamp_timers': True,
        'detection': True,
    }
    assert result['detection'] is not None


def test_disable_rejects_unknown_toggle(cli, monkeypatch, capsys):
    with pytest.raises(SystemExit) as exc:
        invoke(cli, monkeypatch, '--disable', 'firewall')

    assert exc.value.code == 2
    assert "invalid choice" in capsys.readouterr().err


def test_compare_prints_table_and_saves_report(cli, monkeypatch, capsys, tmp_path):
    invoke(cli, monkeypatch, '--scenario', 'steadyState', '--compare', '2',
           '--seed', '5', '-o', str(tmp_path))
    out = capsys.readouterr().out

    assert "Mode Comparison" in out
    assert "Pattern: Steady taken branch x2" in out
    assert "Pipeline:" not in out

    report = json.loads(saved(tmp_path, ".json").read_text())
    assert report['repeats'] == 2
    assert report['modes']['baseline']['runs'] == 2
    assert report['modes']['defended']['runs'] == 2
    assert report['modes']['baseline']['mispredictions'] == 0
    assert report['defence']['state']['detection'] is True
    assert load_config(saved(tmp_path, ".yaml")) == report


def test_negative_compare_is_rejected(cli, monkeypatch, capsys):
    with pytest.raises(SystemExit) as exc:
        invoke(cli, monkeypatch, '--compare', '-1')

    assert exc.value.code == 2
    assert "--compare" in capsys.readouterr().err


def test_save_config_writes_effective_config(cli, monkeypatch, tmp_path):
    path = tmp_path / "effective.yaml"
    invoke(cli, monkeypatch, '--seed', '7', '--disable', 'jitter',
           '--save-config', str(path))

    config = SimulatorConfig.from_file(path)
    assert config.seed == 7
    assert config.defence_state().jitter is False
    assert config.defence_state().fence is True
    assert config.l1_size == 8


def test_config_file_is_used(cli, monkeypatch, capsys, tmp_path):
    path = tmp_path / "small.yaml"
    path.write_text("simulator:\n  l1_size: 2\n")

    invoke(cli, monkeypatch, '--config', str(path), '-o', str(tmp_path / "out"))

    result = json.loads(saved(tmp_path / "out", ".json").read_text())
    assert result['cache_snapshot'][0]['lines'] == [8, 12]


def test_unknown_scenario_exits_with_error(cli, monkeypatch, capsys):
    with pytest.raises(SystemExit) as exc:
        invoke(cli, monkeypatch, '--scenario', 'missing')

    assert exc.value.code == 1
    out = capsys.readouterr().out
    assert "Error:" in out and "Unknown scenario" in out


def test_invalid_config_exits_with_error(cli, monkeypatch, capsys, tmp_path):
    path = tmp_path / "bad.yaml"
    path.write_text("simulator:\n  l1_size: 0\n")

    with pytest.raises(SystemExit) as exc:
        invoke(cli, monkeypatch, '--config', str(path))

    assert exc.value.code == 1
    assert "l1_size" in capsys.readouterr().out


def test_missing_config_exits_with_error(cli, monkeypatch, capsys, tmp_path):
    with pytest.raises(SystemExit) as exc:
        invoke(cli, monkeypatch, '--config', str(tmp_path / "nope.yaml"))

    assert exc.value.code == 1
    assert "Config file not found" in capsys.readouterr().out
