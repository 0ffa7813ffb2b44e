from __future__ import annotations

import json

import pytest

from orchestrator.orchestrator import main as orchestrator_main
from tools.cli import levels
from watersort.errors import GenerationError

_GENERATION_ARGS = ["--impl", "reverse", "--colors", "2", "--height", "4", "--empty", "1", "--moves", "10"]


def test_generate_writes_a_numbered_level(tmp_path, capsys):
    code = levels.main(["generate", "--seed", "cli", "--levels-dir", str(tmp_path), *_GENERATION_ARGS])
    assert code == 0
    summary = json.loads(capsys.readouterr().out)
    assert summary["impl"] == "reverse"
    assert summary["seed"] == "cli"
    assert summary["path"] == str(tmp_path / "level-1.json")
    assert (tmp_path / "level-1.json").is_file()


def test_generate_to_stdout(capsys):
    assert levels.main(["generate", "--seed", "cli", "--stdout", *_GENERATION_ARGS]) == 0
    record = json.loads(capsys.readouterr().out)
    assert record["metadata"]["vialCapacity"] == 4


def test_batch_generates_one_level_per_seed(tmp_path, capsys):
    seeds = tmp_path / "seeds.txt"
    seeds.write_text("# seeds\nfirst\n\nsecond\n")
    out_dir = tmp_path / "levels"
    assert levels.main(["batch", str(seeds), "--levels-dir", str(out_dir), *_GENERATION_ARGS]) == 0
    summaries = json.loads(capsys.readouterr().out)
    assert [item["seed"] for item in summaries] == ["first", "second"]
    assert sorted(path.name for path in out_dir.iterdir()) == ["level-1.json", "level-2.json"]


def test_validate_and_solve_commands(tmp_path, capsys, scenario_record):
    path = tmp_path / "level.json"
    path.write_text(json.dumps(scenario_record))

    assert levels.main(["validate", str(path)]) == 0
    report = json.loads(capsys.readouterr().out)
    assert report["ok"] is True

    assert levels.main(["solve", str(path), "--timeout-ms", "5000", "--max-steps", "10000"]) == 0
    payload = json.loads(capsys.readouterr().out)
    assert payload["solved"] is True

    scenario_record["metadata"]["totalVials"] = 9
    path.write_text(json.dumps(scenario_record))
    assert levels.main(["validate", str(path)]) == 1


def test_invalid_parameters_exit_with_usage_code(capsys):
    args = ["generate", "--stdout", "--impl", "reverse", "--colors", "1", "--height", "4", "--empty", "1"]
    assert levels.main(args) == 2
    assert "error:" in capsys.readouterr().err


def test_generation_failure_message(monkeypatch, capsys):
    def _fail(*_args, **_kwargs):
        raise GenerationError("budget spent", seed="x", attempts=3)

    monkeypatch.setattr(levels.generator_port, "generate", _fail)
    assert levels.main(["generate", "--stdout", "--seed", "x"]) == 1
    assert "couldn't generate a valid puzzle, try again" in capsys.readouterr().err


@pytest.mark.parametrize("command", [["validate", "level.json"], ["solve", "level.json"], ["generate", "--stdout"]])
def test_unknown_profile_is_a_usage_error(command, capsys):
    with pytest.raises(SystemExit) as excinfo:
        levels.main([*command, "--profile", "bogus"])
    assert excinfo.value.code == 2
    assert "invalid choice: 'bogus'" in capsys.readouterr().err


def test_orchestrator_rejects_unknown_profile(capsys):
    with pytest.raises(SystemExit) as excinfo:
        orchestrator_main(["--profile", "bogus"])
    assert excinfo.value.code == 2
    assert "--profile" in capsys.readouterr().err
