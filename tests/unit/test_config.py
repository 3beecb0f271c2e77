import pytest
from dbtk.config import Settings, load_settings
from dbtk.errors import ConfigError


def test_defaults():
    settings = load_settings(env_file=None, environ={})
    assert settings == Settings()
    assert settings.compose_file == 'docker-compose.yml'
    assert settings.wait_timeout == 90
    assert settings.output_path('profiles') == 'config/connection-profiles-test.yaml'


def test_environment_overrides():
    settings = load_settings(env_file=None, environ={
        'DBTK_COMPOSE_FILE': 'compose.test.yml',
        'DBTK_WAIT_TIMEOUT': '30',
        'DBTK_CONSTANTS_PATH': 'pkg/defaults.py',
        'DBTK_UNKNOWN': 'ignored',
        'HOME': '/root',
    })
    assert settings.compose_file == 'compose.test.yml'
    assert settings.wait_timeout == 30
    assert settings.output_path('constants') == 'pkg/defaults.py'


def test_dotenv_file_is_overridden_by_environment(tmp_path):
    env_file = tmp_path / ".env"
    env_file.write_text("DBTK_COMPOSE_FILE=from-dotenv.yml\nDBTK_DOCKER_BIN=podman\n")

    settings = load_settings(env_file=str(env_file), environ={'DBTK_COMPOSE_FILE': 'from-env.yml'})
    assert settings.compose_file == 'from-env.yml'
    assert settings.docker_bin == 'podman'


def test_missing_dotenv_file_is_skipped(tmp_path):
    settings = load_settings(env_file=str(tmp_path / ".env"), environ={})
    assert settings.docker_bin == 'docker'


@pytest.mark.parametrize("value", ["0", "-5", "soon"])
def test_invalid_timeout(value):
    with pytest.raises(ConfigError):
        load_settings(env_file=None, environ={'DBTK_WAIT_TIMEOUT': value})
