import json

from breathpacer.cli import main


def test_exercises_prints_catalog_json(capsys):
    assert main(["exercises"]) == 0
    payload = json.loads(capsys.readouterr().out)
    assert [item["id"] for item in payload] == [
        "box-breathing",
        "4-7-8",
        "deep-calm",
        "energizing",
    ]


def test_show_unknown_exercise(capsys):
    assert main(["show", "nope"]) == 1
    assert "Unknown exercise" in capsys.readouterr().out


def test_simulate_prints_transitions(tmp_path, capsys):
    config = str(tmp_path / "missing.yml")
    code = main(
        ["simulate", "--config", config, "--pattern", "4-7-8", "--minutes", "1", "--seconds", "19"]
    )
    out = capsys.readouterr().out
    assert code == 0
    assert "t=   4s Hold" in out
    assert "t=  11s Exhale" in out
    assert "t=  19s Inhale" in out
    assert "(running)" in out


def test_config_command_writes_defaults(tmp_path):
    path = tmp_path / "breathpacer_config.yml"
    assert main(["config", "--config", str(path)]) == 0
    assert "pattern_id: box-breathing" in path.read_text(encoding="utf-8")
    assert main(["config", "--config", str(path)]) == 1


def test_simulate_rejects_zero_minutes(tmp_path, capsys):
    config = str(tmp_path / "missing.yml")
    code = main(["simulate", "--config", config, "--minutes", "0", "--seconds", "1"])
    assert code == 1
    assert "positive" in capsys.readouterr().out


def test_simulate_rejects_malformed_config(tmp_path, capsys):
    path = tmp_path / "breathpacer_config.yml"
    path.write_text("audio:\n  volume: loud\n", encoding="utf-8")
    assert main(["simulate", "--config", str(path), "--seconds", "1"]) == 1
    assert "Invalid config" in capsys.readouterr().out


def test_simulate_rejects_negative_seconds(tmp_path, capsys):
    config = str(tmp_path / "missing.yml")
    assert main(["simulate", "--config", config, "--seconds", "-3"]) == 1
