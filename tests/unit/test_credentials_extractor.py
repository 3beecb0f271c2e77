import logging
import pytest
from dbtk.MODELS.compose_document import ComposeDocument, ServiceSpec
from dbtk.EXTRACTORS.credentials_extractor import (
    EnvKeys,
    extract_credentials,
    extract_host_port,
)
from dbtk.errors import MissingServiceError
from dbtk.PARSERS.compose_parser import ComposeParser


def _service(user='autotester', password='autotestpass', db='testdb', ports=('5555:5432',)):
    env = {}
    if user is not None:
        env['POSTGRES_USER'] = user
    if password is not None:
        env['POSTGRES_PASSWORD'] = password
    if db is not None:
        env['POSTGRES_DB'] = db
    return ServiceSpec(environment=env, ports=list(ports))


def test_extract_standard_document(compose_file, credentials):
    document = ComposeParser().parse(str(compose_file))
    assert extract_credentials(document) == credentials


def test_hosts_are_always_localhost():
    document = ComposeDocument(services={
        'db-test-customer': _service(ports=['0.0.0.0:5555:5432']),
        'db-test-internal': _service(ports=['6666:5432']),
    })
    creds = extract_credentials(document)
    assert creds.customer_host == 'localhost'
    assert creds.internal_host == 'localhost'
    # Only the text before the first colon is taken.
    assert creds.customer_port == '0.0.0.0'


@pytest.mark.parametrize("ports, expected", [
    (['5555:5432'], '5555'),
    ([], '7777'),
    (['5432'], '7777'),
    (['1:2:3'], '1'),
    (['5432', '8888:5432'], '7777'),
    (['8888:5432', '9999:5432'], '8888'),
    ([':5432'], ''),
])
def test_extract_host_port(ports, expected):
    assert extract_host_port(ports, '7777') == expected


def test_port_defaults_per_service():
    document = ComposeDocument(services={
        'db-test-customer': _service(ports=[]),
        'db-test-internal': _service(ports=['5432']),
    })
    creds = extract_credentials(document)
    assert creds.customer_port == '5555'
    assert creds.internal_port == '6666'


@pytest.mark.parametrize("present, missing", [
    ('db-test-internal', 'db-test-customer'),
    ('db-test-customer', 'db-test-internal'),
])
def test_missing_service(present, missing):
    document = ComposeDocument(services={present: _service(), 'db-test-other': _service()})
    with pytest.raises(MissingServiceError) as exc_info:
        extract_credentials(document)
    assert exc_info.value.service_name == missing
    assert missing in str(exc_info.value)


def test_both_services_missing_names_customer_first():
    with pytest.raises(MissingServiceError) as exc_info:
        extract_credentials(ComposeDocument())
    assert exc_info.value.service_name == 'db-test-customer'


def test_service_names_are_case_sensitive():
    document = ComposeDocument(services={
        'DB-TEST-CUSTOMER': _service(),
        'db-test-internal': _service(),
    })
    with pytest.raises(MissingServiceError):
        extract_credentials(document)


def test_missing_password_is_empty_string(caplog):
    document = ComposeDocument(services={
        'db-test-customer': _service(password=None),
        'db-test-internal': _service(user=None, db=None),
    })
    with caplog.at_level(logging.WARNING):
        creds = extract_credentials(document)

    assert creds.customer_password == ''
    assert creds.customer_user == 'autotester'
    assert creds.internal_user == ''
    assert creds.internal_db == ''
    assert creds.internal_password == 'autotestpass'
    assert "POSTGRES_PASSWORD" in caplog.text


def test_custom_env_keys():
    document = ComposeDocument(services={
        name: ServiceSpec(environment={'MYSQL_USER': 'u', 'MYSQL_PASSWORD': 'p', 'MYSQL_DATABASE': 'd'})
        for name in ('db-test-customer', 'db-test-internal')
    })
    creds = extract_credentials(document, EnvKeys(user='MYSQL_USER', password='MYSQL_PASSWORD',
                                                  database='MYSQL_DATABASE'))
    assert (creds.customer_user, creds.customer_password, creds.customer_db) == ('u', 'p', 'd')


def test_credentials_are_immutable(credentials):
    with pytest.raises(Exception):
        credentials.customer_port = '1'
