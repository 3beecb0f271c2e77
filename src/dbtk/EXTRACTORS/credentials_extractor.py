# Copyright 2024 Michael Maillet, Damien Davison, Sacha Davison
#
# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
#     http://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.


"""
Extraction of test-database credentials from a parsed compose document.

The compose file is the single source of truth: the customer and internal test
databases are the ``db-test-customer`` and ``db-test-internal`` services, their
credentials come from the PostgreSQL image's environment variables and their
ports from the host side of the first port mapping.
"""
import logging
from typing import List, NamedTuple, Sequence, Tuple
from ..MODELS.compose_document import ComposeDocument, ServiceSpec
from ..MODELS.credentials import Credentials
from ..errors import MissingServiceError

logger = logging.getLogger(__name__)

CUSTOMER_SERVICE = "db-test-customer"
INTERNAL_SERVICE = "db-test-internal"

# container_name of each service in docker-compose.yml
CUSTOMER_CONTAINER = "pg-test-customer"
INTERNAL_CONTAINER = "pg-test-internal"

DEFAULT_CUSTOMER_PORT = "5555"
DEFAULT_INTERNAL_PORT = "6666"

HOST = "localhost"


class EnvKeys(NamedTuple):
    """
    Names of the environment variables holding user, password and database.
    """
    user: str
    password: str
    database: str


POSTGRES_ENV_KEYS = EnvKeys(user="POSTGRES_USER", password="POSTGRES_PASSWORD", database="POSTGRES_DB")


class _ServiceCredentials(NamedTuple):
    port: str
    user: str
    password: str
    database: str


def extract_host_port(ports: Sequence[str], default_port: str) -> str:
    """
    Returns the host side of the first port mapping.

    "5555:5432" gives "5555" and "1:2:3" gives "1". An empty list, or a first
    entry without a colon, gives ``default_port``. Later entries are ignored.

    :param ports: Raw port mapping strings in file order.
    :param default_port: Port to use when no mapping is found.
    :return: The host port as a string.
    """
    if not ports:
        return default_port

    host, sep, _ = ports[0].partition(':')
    if not sep:
        return default_port
    return host


def _require_services(document: ComposeDocument) -> Tuple[ServiceSpec, ServiceSpec]:
    services: List[ServiceSpec] = []
    for name in (CUSTOMER_SERVICE, INTERNAL_SERVICE):
        service = document.get_service(name)
        if service is None:
            raise MissingServiceError(name)
        services.append(service)
    return services[0], services[1]


def _read_service(name: str, service: ServiceSpec, env_keys: EnvKeys, default_port: str) -> _ServiceCredentials:
    values = []
    for key in env_keys:
        value = service.env(key)
        if value is None:
            # Presence of the service is enforced, presence of each value is not.
            logger.warning("Service %s does not define %s, using an empty value", name, key)
            value = ""
        values.append(value)

    port = extract_host_port(service.ports, default_port)
    if not service.ports:
        logger.info("Service %s publishes no ports, using default port %s", name, default_port)

    user, password, database = values
    return _ServiceCredentials(port=port, user=user, password=password, database=database)


def extract_credentials(document: ComposeDocument, env_keys: EnvKeys = POSTGRES_ENV_KEYS) -> Credentials:
    """
    Builds the credentials record for both test databases.

    :param document: Parsed compose document.
    :param env_keys: Environment variable names to read from each service.
    :return: Credentials with both hosts set to localhost.
    :raises MissingServiceError: If either required service is absent. When
        both are absent the customer service is reported.
    """
    customer_service, internal_service = _require_services(document)

    customer = _read_service(CUSTOMER_SERVICE, customer_service, env_keys, DEFAULT_CUSTOMER_PORT)
    internal = _read_service(INTERNAL_SERVICE, internal_service, env_keys, DEFAULT_INTERNAL_PORT)

    return Credentials(
        customer_host=HOST,
        customer_port=customer.port,
        customer_user=customer.user,
        customer_password=customer.password,
        customer_db=customer.database,
        internal_host=HOST,
        internal_port=internal.port,
        internal_user=internal.user,
        internal_password=internal.password,
        internal_db=internal.database,
    )
