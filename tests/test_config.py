import os

import pytest

from keel.keel_config import (
    REQUIRED_OPTIONS,
    ConsoleLogger,
    expect_options,
    find_config_file,
    load_config,
    read_config_file,
)
from keel.keel_errors import ConfigurationError
from keel.keel_http import HttpProvider
from keel.keel_provision import ArtifactResolver


def test_defaults_without_config_file(tmp_path):
    options = load_config(str(tmp_path))
    expect_options(options, REQUIRED_OPTIONS)
    assert options["config_file"] is None
    assert options["network"] == "development"
    assert options["network_id"] == "*"
    assert options["build_directory"] == os.path.join(str(tmp_path), "build")
    assert options["contracts_build_directory"] == os.path.join(str(tmp_path), "build", "contracts")
    assert options["migrations_directory"] == os.path.join(str(tmp_path), "migrations")
    assert isinstance(options["provider"], HttpProvider)
    assert options["provider"].url == "http://127.0.0.1:8545"
    assert isinstance(options["resolver"], ArtifactResolver)
    assert options["program_name"] == "keel"
    assert options["prompt"] is None


def test_yaml_config_is_read(tmp_path):
    (tmp_path / "keel-config.yaml").write_text(
        "build_directory: out\n"
        "no_aliases: true\n"
        "console:\n"
        "  prompt: '{{program}}@{{network}}$ '\n"
        "networks:\n"
        "  development:\n"
        "    host: localhost\n"
        "    port: 7545\n"
        "    network_id: 5777\n"
        "  live:\n"
        "    url: https://rpc.invalid\n"
        "    network_id: 1\n",
        encoding="utf-8",
    )
    options = load_config(str(tmp_path), network="live")
    assert options["network"] == "live"
    assert options["network_id"] == 1
    assert options["provider"].url == "https://rpc.invalid"
    assert options["contracts_build_directory"] == os.path.join(str(tmp_path), "out", "contracts")
    assert options["no_aliases"] is True
    assert options["prompt"] == "{{program}}@{{network}}$ "


def test_json_and_toml_configs(tmp_path):
    (tmp_path / "keel-config.json").write_text('{"networks": {"development": {"port": 9000, "host": "h"}}}',
                                               encoding="utf-8")
    assert load_config(str(tmp_path))["provider"].url == "http://h:9000"

    toml_path = tmp_path / "other.toml"
    toml_path.write_text('program_name = "truffle"\n', encoding="utf-8")
    assert read_config_file(str(toml_path)) == {"program_name": "truffle"}


def test_explicit_networks_replace_the_file(tmp_path):
    (tmp_path / "keel-config.yaml").write_text("networks:\n  development:\n    port: 1\n", encoding="utf-8")
    options = load_config(str(tmp_path), networks={"development": {"url": "http://passed.invalid"}})
    assert options["provider"].url == "http://passed.invalid"


def test_unknown_network_is_rejected(tmp_path):
    with pytest.raises(ConfigurationError, match="Unknown network"):
        load_config(str(tmp_path), network="mainnet")


def test_invalid_config_file_is_reported(tmp_path):
    (tmp_path / "keel-config.yaml").write_text("networks: [unclosed\n", encoding="utf-8")
    with pytest.raises(ConfigurationError, match="Invalid configuration file"):
        load_config(str(tmp_path))


def test_non_mapping_config_is_rejected(tmp_path):
    (tmp_path / "keel-config.yaml").write_text("- a\n- b\n", encoding="utf-8")
    with pytest.raises(ConfigurationError):
        load_config(str(tmp_path))


def test_find_config_file_prefers_yaml(tmp_path):
    assert find_config_file(str(tmp_path)) is None
    (tmp_path / "keel-config.json").write_text("{}", encoding="utf-8")
    (tmp_path / "keel-config.yaml").write_text("{}", encoding="utf-8")
    assert find_config_file(str(tmp_path)).endswith("keel-config.yaml")


def test_expect_options_lists_every_missing_key():
    with pytest.raises(ConfigurationError) as info:
        expect_options({"network": "x"}, ["network", "provider", "resolver"])
    assert info.value.missing == ["provider", "resolver"]
    assert "'provider'" in str(info.value)


def test_logger_debug_is_gated(monkeypatch, capsys):
    logger = ConsoleLogger()
    monkeypatch.delenv("KEEL_DEBUG", raising=False)
    logger.debug("hidden")
    logger.log("shown", 1)
    monkeypatch.setenv("KEEL_DEBUG", "1")
    logger.debug("visible")
    captured = capsys.readouterr()
    assert captured.out == "shown 1\n"
    assert captured.err == "[DBG] visible\n"


def test_relative_config_file_is_resolved_against_the_project(tmp_path):
    (tmp_path / "other.yaml").write_text("program_name: truffle\n", encoding="utf-8")
    options = load_config(str(tmp_path), config_file="other.yaml")
    assert options["config_file"] == os.path.join(str(tmp_path), "other.yaml")
    assert options["program_name"] == "truffle"
