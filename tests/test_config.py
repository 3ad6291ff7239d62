"""Tests for configuration models and the YAML loader."""

import os
from pathlib import Path
from unittest.mock import patch

import pytest
from pydantic import ValidationError

from tfpipe.config import (
    CONFIG_ENV_VAR,
    check_required_env,
    load_config,
    passthrough_env,
    secret_values,
)
from tfpipe.config.models import DEFAULT_TARGETS, PipelineConfig
from tfpipe.core.exceptions import ConfigurationError, MissingEnvironmentError


@pytest.fixture(autouse=True)
def no_config_env():
    with patch.dict(os.environ):
        os.environ.pop(CONFIG_ENV_VAR, None)
        yield


class TestPipelineConfig:
    def test_defaults(self, tmp_path):
        config = PipelineConfig(working_dir=tmp_path)

        assert config.make_command == "make"
        assert config.targets == DEFAULT_TARGETS
        assert config.target_for("validate") == "valid"
        assert config.target_for("plan-destroy") == "pland"
        assert config.artifacts.name == "plan"
        assert config.artifacts.plan_file == "plan.out"
        assert config.artifacts.retention_days == 1
        assert config.env.required == ["AWS_DEFAULT_REGION"]
        assert config.artifact_dir == tmp_path / ".tfpipe" / "artifacts"

    def test_target_overrides_merge_with_defaults(self):
        config = PipelineConfig(targets={"validate": "validate"})

        assert config.target_for("validate") == "validate"
        assert config.target_for("fmt") == "fmt"

    def test_unknown_step_id_rejected(self):
        with pytest.raises(ValidationError, match="Unknown step id"):
            PipelineConfig(targets={"deploy": "deploy"})

    def test_invalid_target_rejected(self):
        with pytest.raises(ValidationError, match="Invalid make target"):
            PipelineConfig(targets={"fmt": "fmt; rm -rf /"})

    def test_retention_bounds(self):
        with pytest.raises(ValidationError):
            PipelineConfig(artifacts={"retention_days": 0})

    def test_relative_artifact_dir(self, tmp_path):
        config = PipelineConfig(working_dir=tmp_path, artifacts={"dir": "out/artifacts"})

        assert config.artifact_dir == tmp_path / "out" / "artifacts"

    def test_api_url_trailing_slash_stripped(self):
        config = PipelineConfig(comments={"api_url": "https://github.example.com/api/v3/"})

        assert config.comments.api_url == "https://github.example.com/api/v3"

    def test_comment_body_limit_capped_at_github_maximum(self):
        assert PipelineConfig().comments.max_comment_chars == 65536
        with pytest.raises(ValidationError):
            PipelineConfig(comments={"max_comment_chars": 70000})


class TestLoadConfig:
    def test_no_file_gives_defaults(self, tmp_path):
        config = load_config(working_dir=tmp_path)

        assert config.working_dir == tmp_path
        assert config.targets == DEFAULT_TARGETS

    def test_file_in_working_dir(self, tmp_path):
        (tmp_path / "tfpipe.yaml").write_text(
            "make_command: gmake\n"
            "command_timeout: 600\n"
            "targets:\n"
            "  validate: validate\n"
            "comments:\n"
            "  max_output_chars: 1000\n"
        )

        config = load_config(working_dir=tmp_path)

        assert config.make_command == "gmake"
        assert config.command_timeout == 600
        assert config.target_for("validate") == "validate"
        assert config.comments.max_output_chars == 1000

    def test_relative_working_dir_resolved_against_file(self, tmp_path):
        (tmp_path / "infra").mkdir()
        config_path = tmp_path / "tfpipe.yaml"
        config_path.write_text("working_dir: infra\n")

        config = load_config(config_path)

        assert config.working_dir == tmp_path / "infra"

    def test_working_dir_argument_wins(self, tmp_path):
        config_path = tmp_path / "tfpipe.yaml"
        config_path.write_text("working_dir: /somewhere/else\n")

        config = load_config(config_path, working_dir=tmp_path)

        assert config.working_dir == tmp_path

    def test_env_var_path(self, tmp_path):
        config_path = tmp_path / "custom.yaml"
        config_path.write_text("make_command: gmake\n")

        with patch.dict(os.environ, {CONFIG_ENV_VAR: str(config_path)}):
            config = load_config(working_dir=tmp_path)

        assert config.make_command == "gmake"

    def test_env_var_missing_file(self, tmp_path):
        with patch.dict(os.environ, {CONFIG_ENV_VAR: str(tmp_path / "gone.yaml")}):
            with pytest.raises(ConfigurationError, match=CONFIG_ENV_VAR):
                load_config(working_dir=tmp_path)

    def test_explicit_missing_file(self, tmp_path):
        with pytest.raises(ConfigurationError, match="not found"):
            load_config(tmp_path / "missing.yaml")

    def test_empty_file(self, tmp_path):
        config_path = tmp_path / "tfpipe.yaml"
        config_path.write_text("")

        assert load_config(config_path, working_dir=tmp_path).make_command == "make"

    def test_non_mapping_file(self, tmp_path):
        config_path = tmp_path / "tfpipe.yaml"
        config_path.write_text("- a\n- b\n")

        with pytest.raises(ConfigurationError, match="mapping"):
            load_config(config_path)

    def test_invalid_yaml(self, tmp_path):
        config_path = tmp_path / "tfpipe.yaml"
        config_path.write_text("targets: [unclosed\n")

        with pytest.raises(ConfigurationError, match="Cannot read config"):
            load_config(config_path)

    def test_validation_error_wrapped(self, tmp_path):
        config_path = tmp_path / "tfpipe.yaml"
        config_path.write_text("command_timeout: -1\n")

        with pytest.raises(ConfigurationError, match="Invalid configuration"):
            load_config(config_path)


class TestEnvironment:
    def test_required_env_present(self):
        check_required_env(PipelineConfig(), {"AWS_DEFAULT_REGION": "us-east-1"})

    def test_required_env_missing(self):
        config = PipelineConfig(env={"required": ["AWS_DEFAULT_REGION", "TF_VAR_project"]})

        with pytest.raises(MissingEnvironmentError) as excinfo:
            check_required_env(config, {"AWS_DEFAULT_REGION": ""})

        assert excinfo.value.names == ["AWS_DEFAULT_REGION", "TF_VAR_project"]
        assert isinstance(excinfo.value, ConfigurationError)

    def test_passthrough_only_set_values(self):
        environ = {"AWS_ACCESS_KEY_ID": "AKIAEXAMPLE", "AWS_DEFAULT_REGION": "us-east-1", "HOME": "/root"}

        assert passthrough_env(PipelineConfig(), environ) == {
            "AWS_ACCESS_KEY_ID": "AKIAEXAMPLE",
            "AWS_DEFAULT_REGION": "us-east-1",
        }

    def test_secret_values_include_token(self):
        environ = {
            "AWS_ACCESS_KEY_ID": "AKIAEXAMPLE",
            "AWS_SECRET_ACCESS_KEY": "s3cr3t-value",
            "AWS_DEFAULT_REGION": "us-east-1",
            "GITHUB_TOKEN": "ghp_abc",
        }

        values = secret_values(PipelineConfig(), environ)

        assert sorted(values) == ["AKIAEXAMPLE", "ghp_abc", "s3cr3t-value"]


def test_config_path_is_path(tmp_path):
    assert isinstance(load_config(working_dir=str(tmp_path)).working_dir, Path)
