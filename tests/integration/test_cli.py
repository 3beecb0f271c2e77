import importlib.util
import os
import pytest
import yaml
from click.testing import CliRunner
from dbtk.CLI.main import cli

FAKE_DOCKER = """#!/bin/sh
case "$1" in
  ps) echo pg-test-customer ;;
  inspect)
    case "$*" in
      *"if .State.Health"*) echo true ;;
      *) echo healthy ;;
    esac ;;
esac
"""


def test_cli_help():
    runner = CliRunner()
    result = runner.invoke(cli, ['--help'])
    assert result.exit_code == 0
    assert 'Generate Taskfile' in result.output
    assert 'Wait for a container' in result.output


def test_cli_generate_all(tmp_path, compose_file, monkeypatch):
    monkeypatch.chdir(tmp_path)
    runner = CliRunner()
    result = runner.invoke(cli, ['generate'])
    assert result.exit_code == 0, result.output

    assert (tmp_path / "Taskfile.generated.yml").exists()
    assert (tmp_path / "testdb_defaults.py").exists()
    profiles = yaml.safe_load((tmp_path / "config" / "connection-profiles-test.yaml").read_text(encoding='utf-8'))
    assert profiles['connection_profiles']['test']['port'] == 5555
    assert 'Generated profiles:' in result.output


def test_cli_generate_single_target(tmp_path, compose_file):
    out = tmp_path / "pkg" / "defaults.py"
    runner = CliRunner()
    result = runner.invoke(cli, ['-f', str(compose_file), 'generate', 'constants', '-o', str(out)])
    assert result.exit_code == 0, result.output

    spec = importlib.util.spec_from_file_location("defaults", out)
    module = importlib.util.module_from_spec(spec)
    spec.loader.exec_module(module)
    assert module.DefaultInternalPort == 6666
    assert module.DefaultInternalDB == 'testinternaldb'


def test_cli_generate_out_requires_single_target(compose_file):
    runner = CliRunner()
    result = runner.invoke(cli, ['-f', str(compose_file), 'generate', '-o', 'x.yml'])
    assert result.exit_code == 2


def test_cli_generate_missing_file(tmp_path):
    runner = CliRunner()
    result = runner.invoke(cli, ['-f', str(tmp_path / 'non_existent.yml'), 'generate'])
    assert result.exit_code == 1
    assert 'Error: failed to read' in result.output


def test_cli_generate_missing_service(tmp_path):
    compose = tmp_path / "docker-compose.yml"
    compose.write_text(yaml.dump({'services': {'db-test-customer': {'ports': ['5555:5432']}}}))
    runner = CliRunner()
    result = runner.invoke(cli, ['-f', str(compose), 'generate', 'taskfile', '-o', str(tmp_path / 'T.yml')])
    assert result.exit_code == 1
    assert 'db-test-internal service not found' in result.output
    assert not (tmp_path / 'T.yml').exists()


def test_cli_show_masks_passwords(compose_file):
    runner = CliRunner()
    result = runner.invoke(cli, ['-f', str(compose_file), 'show'])
    assert result.exit_code == 0
    assert 'testcustomerdb' in result.output
    assert 'autotestpass' not in result.output

    result = runner.invoke(cli, ['-f', str(compose_file), 'show', '--show-password'])
    assert 'autotestpass' in result.output


@pytest.mark.skipif(os.name == "nt", reason="fake docker script needs a POSIX shell")
def test_cli_wait(tmp_path):
    docker = tmp_path / "docker"
    docker.write_text(FAKE_DOCKER)
    docker.chmod(0o755)

    runner = CliRunner()
    env = {'DBTK_DOCKER_BIN': str(docker)}
    result = runner.invoke(cli, ['wait', 'pg-test-customer', '5'], env=env)
    assert result.exit_code == 0, result.output

    result = runner.invoke(cli, ['wait', 'pg-missing', '5'], env=env)
    assert result.exit_code == 1

    result = runner.invoke(cli, ['wait', 'pg-test-customer', '0'], env=env)
    assert result.exit_code == 2


def test_cli_invalid_setting(compose_file):
    runner = CliRunner()
    result = runner.invoke(cli, ['-f', str(compose_file), 'show'], env={'DBTK_WAIT_TIMEOUT': 'never'})
    assert result.exit_code == 1
    assert 'DBTK_' in result.output


@pytest.mark.skipif(os.name == "nt", reason="fake docker script needs a POSIX shell")
def test_cli_verify_reports_failures(tmp_path, compose_file):
    docker = tmp_path / "docker"
    docker.write_text("#!/bin/sh\nexit 1\n")
    docker.chmod(0o755)

    runner = CliRunner()
    result = runner.invoke(cli, ['-f', str(compose_file), 'verify'], env={'DBTK_DOCKER_BIN': str(docker)})
    assert result.exit_code == 1
    assert 'Customer DB: autotester@localhost:5555/testcustomerdb' in result.output
    assert 'Customer database container not running' in result.output
