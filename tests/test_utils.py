from pathlib import Path

import pytest
import yaml

from revdeploy.deployment.utils import (
    deep_merge, get_client_kwargs, get_temp_location, load_config, set_output_variable
)
from revdeploy.exceptions import ConfigurationError, OutputBindingFailed


def test_deep_merge_nested():
    base = {"aws": {"region": "us-east-1", "endpoint_url": None}, "list": [1]}
    merged = deep_merge(base, {"aws": {"region": "eu-west-1"}, "list": [2]})
    assert merged == {"aws": {"region": "eu-west-1", "endpoint_url": None}, "list": [2]}
    assert base["aws"]["region"] == "us-east-1"


def test_load_config_defaults_without_file(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    monkeypatch.delenv("REVDEPLOY_CONFIG", raising=False)
    config = load_config()
    assert config["deployment"]["timeout_minutes"] == 30
    assert config["aws"]["region"] == "us-east-1"


def test_load_config_with_local_override(tmp_path, monkeypatch):
    config_dir = tmp_path / "config"
    config_dir.mkdir()
    (config_dir / "deployment-config.yaml").write_text(
        "aws:\n  region: eu-west-1\ndeployment:\n  timeout_minutes: 20\n"
    )
    (config_dir / "deployment-config.local.yaml").write_text(
        "aws:\n  endpoint_url: http://localhost:4566\n"
    )
    monkeypatch.chdir(tmp_path)
    monkeypatch.delenv("REVDEPLOY_CONFIG", raising=False)

    monkeypatch.delenv("DEPLOYMENT_ENV", raising=False)
    assert load_config()["aws"]["endpoint_url"] is None

    monkeypatch.setenv("DEPLOYMENT_ENV", "local")
    config = load_config()
    assert config["aws"] == {
        "region": "eu-west-1", "endpoint_url": "http://localhost:4566", "credentials_env": {}
    }
    assert config["deployment"]["timeout_minutes"] == 20


def test_load_config_from_env_path(tmp_path, monkeypatch):
    path = tmp_path / "custom.yaml"
    path.write_text("deployment:\n  outputs_file: out.yaml\n")
    monkeypatch.setenv("REVDEPLOY_CONFIG", str(path))
    assert load_config()["deployment"]["outputs_file"] == "out.yaml"


def test_client_kwargs_use_env_credentials_when_set(monkeypatch):
    aws = {"region": "us-west-2", "credentials_env": {
        "access_key_id": "MY_KEY", "secret_access_key": "MY_SECRET", "session_token": "MY_TOKEN"
    }}
    monkeypatch.delenv("MY_KEY", raising=False)
    assert get_client_kwargs(aws) == {"region_name": "us-west-2"}

    monkeypatch.setenv("MY_KEY", "AKIA")
    monkeypatch.setenv("MY_SECRET", "secret")
    monkeypatch.delenv("MY_TOKEN", raising=False)
    assert get_client_kwargs(aws) == {
        "region_name": "us-west-2", "aws_access_key_id": "AKIA", "aws_secret_access_key": "secret"
    }


def test_temp_location_created(tmp_path, config):
    location = get_temp_location(config)
    assert location == Path(config["deployment"]["temp_dir"])
    assert location.is_dir()


def test_set_output_variable_merges(tmp_path, monkeypatch):
    monkeypatch.delenv("GITHUB_OUTPUT", raising=False)
    outputs_file = tmp_path / "nested" / "outputs.yaml"
    set_output_variable("FIRST", "a", outputs_file)
    set_output_variable("DEPLOYMENT_ID", "d-1", outputs_file)
    assert yaml.safe_load(outputs_file.read_text()) == {"FIRST": "a", "DEPLOYMENT_ID": "d-1"}


def test_set_output_variable_github(tmp_path, monkeypatch):
    github_output = tmp_path / "github_output"
    monkeypatch.setenv("GITHUB_OUTPUT", str(github_output))
    set_output_variable("DEPLOYMENT_ID", "d-1", tmp_path / "outputs.yaml")
    assert github_output.read_text() == "DEPLOYMENT_ID=d-1\n"


def test_set_output_variable_noop_without_name(tmp_path):
    outputs_file = tmp_path / "outputs.yaml"
    set_output_variable("", "d-1", outputs_file)
    assert not outputs_file.exists()


@pytest.mark.parametrize("content", ["key: [unclosed\n", "- a\n- b\n"])
def test_set_output_variable_bad_outputs_file(tmp_path, monkeypatch, content):
    monkeypatch.delenv("GITHUB_OUTPUT", raising=False)
    outputs_file = tmp_path / "outputs.yaml"
    outputs_file.write_text(content)
    with pytest.raises(OutputBindingFailed) as excinfo:
        set_output_variable("DEPLOYMENT_ID", "d-1", outputs_file)
    assert excinfo.value.context["path"] == str(outputs_file)


def test_load_config_unreadable_file(tmp_path, monkeypatch):
    broken = tmp_path / "broken.yaml"
    broken.write_text("aws: [unclosed\n")
    monkeypatch.setenv("REVDEPLOY_CONFIG", str(broken))
    with pytest.raises(ConfigurationError):
        load_config()
