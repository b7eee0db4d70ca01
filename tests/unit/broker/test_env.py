"""
Tests for broker configuration loading.
"""

import pytest

from adminbus.broker.env import Env, TimeParser, load_env


class TestTimeParser:

    @pytest.mark.parametrize(
        "value,seconds",
        [
            ("10m", 600.0),
            ("1m30s", 90.0),
            ("2s", 2.0),
            ("1h", 3600.0),
            ("0.5s", 0.5),
            ("45", 45.0),
        ],
    )
    def test_parse(self, value: str, seconds: float) -> None:
        assert TimeParser().parse(value) == seconds


class TestEnv:

    def test_defaults(self) -> None:
        env = Env()

        assert env.ADMIN_MESSAGE_TOPIC is None
        assert env.ADMIN_MESSAGE_MAX_SIZE == 256 * 1024
        assert env.get_cleanup_config() == {
            'base_delay': 600.0,
            'release_grace': 60.0,
            'cluster_size': 1,
        }
        assert env.get_liveness_timeout() == 2.0

    def test_cleanup_config(self) -> None:
        env = Env(
            INSTANCE_COUNT=12,
            ADMIN_MESSAGE_CLEANUP_DELAY="5m",
            ADMIN_MESSAGE_CLEANUP_RELEASE_GRACE="30s",
        )

        assert env.get_cleanup_config() == {
            'base_delay': 300.0,
            'release_grace': 30.0,
            'cluster_size': 12,
        }


class TestLoadEnv:

    def test_reads_environment_variables(self, monkeypatch, tmp_path) -> None:
        monkeypatch.setenv("ADMIN_MESSAGE_TOPIC", "admin-topic")
        monkeypatch.setenv("INSTANCE_COUNT", "4")

        env = load_env(Env, env_file=str(tmp_path / "missing.env"))

        assert env.ADMIN_MESSAGE_TOPIC == "admin-topic"
        assert env.INSTANCE_COUNT == 4

    def test_env_file_overrides_environment(self, monkeypatch, tmp_path) -> None:
        monkeypatch.setenv("ADMIN_MESSAGE_TOPIC", "from-environment")
        env_file = tmp_path / ".env"
        env_file.write_text(
            "ADMIN_MESSAGE_TOPIC=from-file\n"
            "ADMIN_MESSAGE_JWT=secret-token\n"
            "ADMIN_MESSAGE_MAX_SIZE=1024\n"
            "UNRELATED=ignored\n"
        )

        env = load_env(Env, env_file=str(env_file))

        assert env.ADMIN_MESSAGE_TOPIC == "from-file"
        assert env.ADMIN_MESSAGE_JWT == "secret-token"
        assert env.ADMIN_MESSAGE_MAX_SIZE == 1024

    def test_override_wins(self, monkeypatch, tmp_path) -> None:
        monkeypatch.setenv("ADMIN_MESSAGE_TOPIC", "from-environment")
        monkeypatch.setenv("INSTANCE_COUNT", "4")

        env = load_env(
            Env,
            env_file=str(tmp_path / "missing.env"),
            override=Env(ADMIN_MESSAGE_TOPIC="from-override"),
        )

        assert env.ADMIN_MESSAGE_TOPIC == "from-override"
