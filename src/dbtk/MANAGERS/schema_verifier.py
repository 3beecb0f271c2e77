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
Post-startup verification of the test databases: containers running,
connections accepted, and the expected schemas and tables present.
"""
import logging
import subprocess
from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional, Tuple
from ..MODELS.credentials import Credentials
from ..EXTRACTORS.credentials_extractor import CUSTOMER_CONTAINER, INTERNAL_CONTAINER

logger = logging.getLogger(__name__)

CUSTOMER_SCHEMAS: List[Tuple[str, str]] = [
    ("daana_dw", "Customer data warehouse"),
    ("daana_metadata", "Customer metadata"),
    ("stage", "Customer staging"),
]
INTERNAL_SCHEMAS: List[Tuple[str, str]] = [
    ("frontend", "Internal frontend"),
    ("daana_metadata", "Internal metadata"),
    ("daana_stage", "Internal staging"),
    ("daana_dw", "Internal data warehouse"),
]
FRONTEND_TABLE_COUNT = 12
FRONTEND_TABLES: List[Tuple[str, str]] = [
    ("bim", "Frontend BIM"),
    ("src_to_target", "Frontend mapping"),
    ("master_process", "Frontend process"),
]


class CheckStatus(str, Enum):
    SUCCESS = "SUCCESS"
    WARNING = "WARNING"
    ERROR = "ERROR"


@dataclass
class CheckResult:
    status: CheckStatus
    message: str

    @property
    def passed(self) -> bool:
        return self.status == CheckStatus.SUCCESS


@dataclass
class VerificationReport:
    results: List[CheckResult] = field(default_factory=list)

    @property
    def passed(self) -> bool:
        # A warning still fails the run.
        return all(r.passed for r in self.results)

    def add(self, result: CheckResult) -> bool:
        self.results.append(result)
        log = logger.info if result.passed else logger.warning
        log("%s: %s", result.status.value, result.message)
        return result.passed


class DatabaseVerifier:
    """
    Runs health checks against the test database containers through docker exec.
    """
    def __init__(self, credentials: Credentials, docker_bin: str = "docker"):
        """
        :param credentials: Credentials extracted from the compose file.
        :param docker_bin: Docker CLI executable.
        """
        self.credentials = credentials
        self.docker_bin = docker_bin

    def _docker(self, *args: str) -> Optional[subprocess.CompletedProcess]:
        try:
            return subprocess.run([self.docker_bin, *args], capture_output=True, text=True, timeout=30)
        except (OSError, subprocess.TimeoutExpired) as e:
            logger.debug("docker %s failed: %s", " ".join(args), e)
            return None

    def _count(self, container: str, user: str, database: str, sql: str) -> int:
        """
        Runs a COUNT(*) query and returns the number, or 0 if it could not run.
        """
        result = self._docker("exec", container, "psql", "-U", user, "-d", database, "-t", "-c", sql)
        if result is None or result.returncode != 0:
            return 0
        tokens = result.stdout.split()
        if not tokens or not tokens[0].isdigit():
            return 0
        return int(tokens[0])

    def check_container_running(self, container: str, description: str) -> CheckResult:
        result = self._docker("ps", "--format", "{{.Names}}")
        if result is not None and result.returncode == 0 and container in result.stdout.splitlines():
            return CheckResult(CheckStatus.SUCCESS, f"{description} database container is running")
        return CheckResult(CheckStatus.ERROR, f"{description} database container not running")

    def check_connection(self, container: str, host: str, port: str, user: str, database: str,
                         description: str) -> CheckResult:
        result = self._docker("exec", container, "pg_isready", "-h", "localhost", "-U", user, "-d", database, "-t", "5")
        if result is not None and result.returncode == 0:
            return CheckResult(CheckStatus.SUCCESS, f"{description} database ({host}:{port}) is accepting connections")
        return CheckResult(CheckStatus.ERROR, f"{description} database ({host}:{port}) is not responding")

    def check_schema(self, container: str, user: str, database: str, schema: str,
                     description: str) -> CheckResult:
        sql = f"SELECT COUNT(*) FROM information_schema.schemata WHERE schema_name='{schema}';"
        if self._count(container, user, database, sql) == 1:
            return CheckResult(CheckStatus.SUCCESS, f"{description} schema '{schema}' exists")
        return CheckResult(CheckStatus.ERROR, f"{description} schema '{schema}' missing")

    def check_table_count(self, container: str, user: str, database: str, schema: str, expected: int,
                          description: str) -> CheckResult:
        sql = f"SELECT COUNT(*) FROM information_schema.tables WHERE table_schema='{schema}';"
        count = self._count(container, user, database, sql)
        status = CheckStatus.SUCCESS if count == expected else CheckStatus.WARNING
        return CheckResult(status, f"{description} has {count}/{expected} tables")

    def check_table_exists(self, container: str, user: str, database: str, schema: str, table: str,
                           description: str) -> CheckResult:
        sql = (
            "SELECT COUNT(*) FROM information_schema.tables "
            f"WHERE table_schema='{schema}' AND table_name='{table}';"
        )
        if self._count(container, user, database, sql) == 1:
            return CheckResult(CheckStatus.SUCCESS, f"{description} table '{table}' exists")
        return CheckResult(CheckStatus.ERROR, f"{description} table '{table}' missing")

    def run(self) -> VerificationReport:
        """
        Runs every check and collects the results. Checks keep running after a
        failure so the report lists everything that is wrong.
        """
        c = self.credentials
        report = VerificationReport()

        report.add(self.check_container_running(CUSTOMER_CONTAINER, "Customer"))
        report.add(self.check_container_running(INTERNAL_CONTAINER, "Internal"))

        report.add(self.check_connection(CUSTOMER_CONTAINER, c.customer_host, c.customer_port,
                                         c.customer_user, c.customer_db, "Customer"))
        report.add(self.check_connection(INTERNAL_CONTAINER, c.internal_host, c.internal_port,
                                         c.internal_user, c.internal_db, "Internal"))

        for schema, description in CUSTOMER_SCHEMAS:
            report.add(self.check_schema(CUSTOMER_CONTAINER, c.customer_user, c.customer_db, schema, description))
        for schema, description in INTERNAL_SCHEMAS:
            report.add(self.check_schema(INTERNAL_CONTAINER, c.internal_user, c.internal_db, schema, description))

        report.add(self.check_table_count(INTERNAL_CONTAINER, c.internal_user, c.internal_db, "frontend",
                                          FRONTEND_TABLE_COUNT, "Frontend schema"))
        for table, description in FRONTEND_TABLES:
            report.add(self.check_table_exists(INTERNAL_CONTAINER, c.internal_user, c.internal_db, "frontend",
                                               table, description))
        return report
