import json

import pytest

from ecs_agent.config import DEFAULT_RESERVED_PORTS, Config, load_config, save_config
from ecs_agent.errors import ConfigError


def test_defaults_without_file(tmp_path):
    cfg = load_config(tmp_path / "missing.json", env={})

    assert cfg.cluster_arn == ""
    assert cfg.api_port == 443
    assert cfg.reserved_ports == DEFAULT_RESERVED_PORTS
    assert cfg.api_endpoint == ""


def test_file_then_environment(tmp_path):
    path = tmp_path / "ecs.config.json"
    path.write_text(json.dumps({"cluster_arn": "from-file", "aws_region": "eu-west-1", "reserved_ports": [22]}))

    cfg = load_config(path, env={"ECS_CLUSTER": "from-env", "ECS_RESERVED_PORTS": "[22, 8080]"})

    assert cfg.cluster_arn == "from-env"
    assert cfg.aws_region == "eu-west-1"
    assert cfg.reserved_ports == [22, 8080]
    assert cfg.api_endpoint == "ecs.eu-west-1.amazonaws.com"


def test_backend_overrides(tmp_path):
    cfg = load_config(tmp_path / "none.json", env={
        "AWS_DEFAULT_REGION": "us-east-1",
        "ECS_BACKEND_HOST": "http://localhost:8080",
        "ECS_BACKEND_PORT": "8080",
        "ECS_INSECURE_SKIP_VERIFY": "true",
    })

    assert cfg.api_endpoint == "http://localhost:8080"
    assert cfg.api_port == 8080
    assert cfg.insecure_skip_verify is True


@pytest.mark.parametrize("env", [
    {"ECS_RESERVED_PORTS": "22,80"},
    {"ECS_RESERVED_PORTS": '{"a": 1}'},
    {"ECS_BACKEND_PORT": "https"},
])
def test_bad_environment_is_rejected(tmp_path, env):
    with pytest.raises(ConfigError):
        load_config(tmp_path / "none.json", env=env)


def test_invalid_json_file(tmp_path):
    path = tmp_path / "ecs.config.json"
    path.write_text("{not json")
    with pytest.raises(ConfigError):
        load_config(path, env={})


def test_unknown_keys_are_ignored(tmp_path):
    path = tmp_path / "ecs.config.json"
    path.write_text(json.dumps({"aws_region": "us-west-2", "docker_endpoint": "unix:///var/run/docker.sock"}))
    assert load_config(path, env={}).aws_region == "us-west-2"


def test_validate():
    Config(aws_region="us-west-2").complete().validate()

    with pytest.raises(ConfigError):
        Config().complete().validate()
    with pytest.raises(ConfigError):
        Config(aws_region="us-west-2", api_port=0).complete().validate()
    with pytest.raises(ConfigError):
        Config(aws_region="us-west-2", reserved_ports=[70000]).complete().validate()


def test_save_round_trips_resolved_cluster(tmp_path):
    path = tmp_path / "nested" / "ecs.config.json"
    cfg = Config(aws_region="us-west-2").complete()
    cfg.cluster_arn = "default"

    save_config(path, cfg)

    assert load_config(path, env={}).cluster_arn == "default"


def test_file_values_are_coerced(tmp_path):
    path = tmp_path / "ecs.config.json"
    path.write_text(json.dumps({
        "aws_region": "us-west-2",
        "api_port": "8443",
        "api_timeout": 5,
        "reserved_ports": ["22", 80],
        "insecure_skip_verify": "true",
    }))

    cfg = load_config(path, env={})
    cfg.validate()

    assert cfg.api_port == 8443
    assert cfg.api_timeout == 5.0
    assert cfg.reserved_ports == [22, 80]
    assert cfg.insecure_skip_verify is True


@pytest.mark.parametrize("raw", [
    {"api_port": "https"},
    {"api_port": True},
    {"api_port": None},
    {"api_timeout": "soon"},
    {"reserved_ports": "22,80"},
    {"reserved_ports": [22, None]},
    {"aws_region": 42},
    {"insecure_skip_verify": 1},
])
def test_file_values_of_wrong_type_are_rejected(tmp_path, raw):
    path = tmp_path / "ecs.config.json"
    path.write_text(json.dumps(raw))

    with pytest.raises(ConfigError):
        load_config(path, env={})
