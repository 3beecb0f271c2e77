import os
import textwrap
import pytest
import yaml

from dbtk.MODELS.credentials import Credentials

STANDARD_COMPOSE = {
    'services': {
        'db-test-customer': {
            'image': 'postgres:16',
            'container_name': 'pg-test-customer',
            'environment': {
                'POSTGRES_USER': 'autotester',
                'POSTGRES_PASSWORD': 'autotestpass',
                'POSTGRES_DB': 'testcustomerdb',
            },
            'ports': ['5555:5432'],
        },
        'db-test-internal': {
            'image': 'postgres:16',
            'container_name': 'pg-test-internal',
            'environment': {
                'POSTGRES_USER': 'autotester',
                'POSTGRES_PASSWORD': 'autotestpass',
                'POSTGRES_DB': 'testinternaldb',
            },
            'ports': ['6666:5432'],
        },
    }
}


@pytest.fixture
def compose_file(tmp_path):
    path = tmp_path / "docker-compose.yml"
    with open(path, 'w') as f:
        yaml.dump(STANDARD_COMPOSE, f)
    return path


@pytest.fixture
def credentials():
    return Credentials(
        customer_host='localhost',
        customer_port='5555',
        customer_user='autotester',
        customer_password='autotestpass',
        customer_db='testcustomerdb',
        internal_host='localhost',
        internal_port='6666',
        internal_user='autotester',
        internal_password='autotestpass',
        internal_db='testinternaldb',
    )


@pytest.fixture
def fake_docker(tmp_path):
    """
    Writes an executable shell script that stands in for the docker CLI.
    """
    if os.name == 'nt':
        pytest.skip("fake docker script needs a POSIX shell")

    def _write(body):
        path = tmp_path / "bin" / "docker"
        path.parent.mkdir(exist_ok=True)
        path.write_text("#!/bin/sh\n" + textwrap.dedent(body))
        path.chmod(0o755)
        return str(path)

    return _write
