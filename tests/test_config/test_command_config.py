import pytest

from flagchain.config import CommandConfigFile, RawCommandConfig, load_command_config
from flagchain.exceptions import ConfigFileError


def test_raw_command_flattening():
    entry = RawCommandConfig(
        name="deploy",
        options={"env": "prod", "tag": ["a", "b"], "dry-run": True, "force": False, "skip": None},
        args=["svc", 3],
    )
    assert entry.to_args() == [
        "deploy",
        "-env=prod",
        "-tag=a",
        "-tag=b",
        "-dry-run",
        "-force=false",
        "svc",
        "3",
    ]


def test_raw_command_rejects_flag_like_name():
    with pytest.raises(ValueError):
        RawCommandConfig(name="-deploy")


def test_config_file_chains_commands():
    config = CommandConfigFile(
        commands=[
            {"name": "deploy", "options": {"replicas": 2}},
            {"name": "check", "options": {"verbose": True}},
        ]
    )
    assert config.to_args() == ["deploy", "-replicas=2", "check", "-verbose"]


def test_load_yaml(tmp_path):
    path = tmp_path / "commands.yaml"
    path.write_text(
        "commands:\n"
        "  - name: deploy\n"
        "    options:\n"
        "      env: prod\n"
        "      tag: [a, b]\n"
        "  - name: check\n"
        "    args: [./...]\n"
    )
    assert load_command_config(path) == [
        "deploy",
        "-env=prod",
        "-tag=a",
        "-tag=b",
        "check",
        "./...",
    ]


def test_load_toml(tmp_path):
    path = tmp_path / "commands.toml"
    path.write_text(
        "[[commands]]\n"
        'name = "deploy"\n'
        "[commands.options]\n"
        'env = "qa"\n'
        "dry-run = true\n"
        "\n"
        "[[commands]]\n"
        'name = "check"\n'
    )
    assert load_command_config(path) == ["deploy", "-env=qa", "-dry-run", "check"]


def test_load_unsupported_suffix(tmp_path):
    path = tmp_path / "commands.ini"
    path.write_text("[commands]\n")
    with pytest.raises(ConfigFileError):
        load_command_config(path)


def test_load_missing_file(tmp_path):
    with pytest.raises(FileNotFoundError):
        load_command_config(tmp_path / "missing.yaml")


def test_load_rejects_non_mapping(tmp_path):
    path = tmp_path / "commands.yaml"
    path.write_text("- deploy\n- check\n")
    with pytest.raises(ConfigFileError) as excinfo:
        load_command_config(path)
    assert "must contain a dictionary" in str(excinfo.value)


def test_load_rejects_invalid_entries(tmp_path):
    path = tmp_path / "commands.yaml"
    path.write_text("commands:\n  - options: {env: prod}\n")
    with pytest.raises(ConfigFileError):
        load_command_config(path)


def test_load_rejects_malformed_yaml(tmp_path):
    path = tmp_path / "commands.yml"
    path.write_text("commands: [unclosed\n")
    with pytest.raises(ConfigFileError):
        load_command_config(path)
