"""Tests for the YAML configuration loader and environment overrides."""

from stagingpage.config import load_config

SAMPLE_CONFIG = """
live:
  base_url: https://live.example.test/v1
  api_key: file-key
  page_id: page-1

settings:
  data_dir: /tmp/staging
  demo_mode: true
  sweep_interval: 60
  log_level: DEBUG
"""


class TestLoadConfig:
    def test_missing_file_uses_defaults(self, tmp_path):
        settings = load_config(tmp_path / "absent.yaml", env={})
        assert settings.data_dir == ".test-data"
        assert settings.sweep_interval == 300
        assert settings.demo_mode is False
        assert not settings.live.is_configured

    def test_reads_file(self, tmp_path):
        path = tmp_path / "config.yaml"
        path.write_text(SAMPLE_CONFIG)
        settings = load_config(path, env={})
        assert settings.live.base_url == "https://live.example.test/v1"
        assert settings.live.is_configured
        assert settings.data_dir == "/tmp/staging"
        assert settings.demo_mode is True
        assert settings.sweep_interval == 60
        assert settings.state_file == "test-data.json"

    def test_environment_wins(self, tmp_path):
        path = tmp_path / "config.yaml"
        path.write_text(SAMPLE_CONFIG)
        env = {
            "STATUSPAGE_API_KEY": "env-key",
            "PREVIEW_DEMO_MODE": "false",
            "CRON_SECRET": "s3cret",
            "PORT": "8080",
        }
        settings = load_config(path, env=env)
        assert settings.live.api_key == "env-key"
        assert settings.live.page_id == "page-1"
        assert settings.demo_mode is False
        assert settings.cron_secret == "s3cret"
        assert settings.port == 8080

    def test_empty_file(self, tmp_path):
        path = tmp_path / "config.yaml"
        path.write_text("")
        settings = load_config(path, env={"PREVIEW_DEMO_MODE": "true"})
        assert settings.demo_mode is True
        assert settings.live.base_url == "https://api.statuspage.io/v1"
