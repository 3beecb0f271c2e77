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
Generator for Taskfile.generated.yml: test-database credentials as Taskfile
variables plus tasks that start, connect to and seed the test databases.
"""
from datetime import datetime
from typing import Optional
from ..MODELS.credentials import Credentials
from ..EXTRACTORS.credentials_extractor import CUSTOMER_CONTAINER, INTERNAL_CONTAINER
from .base import format_timestamp, render_template, write_artifact

TASKFILE_TEMPLATE = """# 🤖 THIS FILE IS AUTO-GENERATED from docker-compose.yml
# DO NOT EDIT MANUALLY - Run 'dbtk generate taskfile' to regenerate
# Generated on: {{ timestamp }}
# Source: docker-compose.yml
# ---------------------------------------------------------------------------

version: '3'

vars:
  # Automated testing database credentials (from docker-compose.yml)
  TEST_CUSTOMER_HOST: {{ customer_host | yaml_str }}
  TEST_CUSTOMER_PORT: {{ customer_port | yaml_str }}
  TEST_CUSTOMER_USER: {{ customer_user | yaml_str }}
  TEST_CUSTOMER_PASSWORD: {{ customer_password | yaml_str }}
  TEST_CUSTOMER_DB: {{ customer_db | yaml_str }}

  TEST_INTERNAL_HOST: {{ internal_host | yaml_str }}
  TEST_INTERNAL_PORT: {{ internal_port | yaml_str }}
  TEST_INTERNAL_USER: {{ internal_user | yaml_str }}
  TEST_INTERNAL_PASSWORD: {{ internal_password | yaml_str }}
  TEST_INTERNAL_DB: {{ internal_db | yaml_str }}

tasks:
  # Database commands using the generated credentials
  test:db:start:generated:
    desc: Start the automated testing PostgreSQL databases (using generated credentials)
    cmds:
      - echo "Starting automated testing PostgreSQL databases..."
      - docker compose up -d db-test-customer db-test-internal
      - echo "Waiting for test databases to become healthy..."
      - ./scripts/wait-for-healthy.sh {{ customer_container }} {{ wait_timeout }}
      - ./scripts/wait-for-healthy.sh {{ internal_container }} {{ wait_timeout }}
      - echo "✅ Automated testing databases are ready!"

  test:db:psql:generated:
    desc: Connect to automated testing customer PostgreSQL with psql (using generated credentials)
    cmds:
      - docker exec -it {{ customer_container }} psql -U {{ customer_user | shell }} -d {{ customer_db | shell }}

  test:db:psql:internal:generated:
    desc: Connect to automated testing internal PostgreSQL with psql (using generated credentials)
    cmds:
      - docker exec -it {{ internal_container }} psql -U {{ internal_user | shell }} -d {{ internal_db | shell }}

  # Dev database seed tasks (manual testing)
  seed:load:dev:generated:
    desc: Load seed data into dev customer database (configurable via SEED_DATA_PATH)
    cmds:
      - |
        SEED_FILE="${SEED_DATA_PATH:-{{ seed_path }}}"
        echo "Checking seed data file: $SEED_FILE"
        if [ ! -f "$SEED_FILE" ]; then
          echo "⚠️  WARNING: Seed data file not found at: $SEED_FILE"
          echo "⚠️  Skipping seed data loading for dev database"
          echo "⚠️  To fix: Set SEED_DATA_PATH environment variable or ensure db-testkit is cloned"
          echo "⚠️  Example: export SEED_DATA_PATH=/path/to/your/seed.sql"
          exit 0
        fi
        echo "Loading seed data from $SEED_FILE into dev customer database..."
        if cat "$SEED_FILE" | docker exec -i pg-customer psql -U dev -d customerdb 2>&1 | grep -v "does not exist, skipping"; then
          echo "✓ Successfully loaded seed data into dev customer database"
        else
          echo "⚠️  WARNING: Failed to load seed data into dev customer database"
          echo "⚠️  This may be expected if the database is not running or the seed data has issues"
          exit 0
        fi

  seed:verify:dev:generated:
    desc: Verify seed data in dev customer database
    cmds:
      - echo "Verifying seed data in dev customer database..."
      - docker exec pg-customer psql -U dev -d customerdb -c "{{ verify_query }}"

  seed:reload:dev:generated:
    desc: Reload seed data in dev customer database
    cmds:
      - echo "Dropping {{ seed_schema }} schema in dev customer database..."
      - docker exec pg-customer psql -U dev -d customerdb -c "DROP SCHEMA IF EXISTS {{ seed_schema }} CASCADE;"
      - task: seed:load:dev:generated

  seed:clean:dev:generated:
    desc: Clean seed data from dev customer database
    cmds:
      - echo "Dropping {{ seed_schema }} schema from dev customer database..."
      - docker exec pg-customer psql -U dev -d customerdb -c "DROP SCHEMA IF EXISTS {{ seed_schema }} CASCADE;"
      - echo "✓ Successfully dropped {{ seed_schema }} schema from dev customer database"

  # Test database seed tasks (automated testing)
  seed:load:test:generated:
    desc: Load seed data into test customer database (configurable via SEED_DATA_PATH)
    cmds:
      - |
        SEED_FILE="${SEED_DATA_PATH:-{{ seed_path }}}"
        echo "Checking seed data file: $SEED_FILE"
        if [ ! -f "$SEED_FILE" ]; then
          echo "⚠️  WARNING: Seed data file not found at: $SEED_FILE"
          echo "⚠️  Skipping seed data loading for test database"
          echo "⚠️  To fix: Set SEED_DATA_PATH environment variable or ensure db-testkit is cloned"
          echo "⚠️  Example: export SEED_DATA_PATH=/path/to/your/seed.sql"
          exit 0
        fi
        echo "Loading seed data from $SEED_FILE into test customer database..."
        if cat "$SEED_FILE" | docker exec -i {{ customer_container }} psql -U {{ customer_user | shell }} -d {{ customer_db | shell }} 2>&1 | grep -v "does not exist, skipping"; then
          echo "✓ Successfully loaded seed data into test customer database"
        else
          echo "⚠️  WARNING: Failed to load seed data into test customer database"
          echo "⚠️  This may be expected if the database is not running or the seed data has issues"
          exit 0
        fi

  seed:verify:test:generated:
    desc: Verify seed data in test customer database
    cmds:
      - echo "Verifying seed data in test customer database..."
      - docker exec {{ customer_container }} psql -U {{ customer_user | shell }} -d {{ customer_db | shell }} -c "{{ verify_query }}"

  seed:reload:test:generated:
    desc: Reload seed data in test customer database
    cmds:
      - echo "Dropping {{ seed_schema }} schema in test customer database..."
      - docker exec {{ customer_container }} psql -U {{ customer_user | shell }} -d {{ customer_db | shell }} -c "DROP SCHEMA IF EXISTS {{ seed_schema }} CASCADE;"
      - task: seed:load:test:generated

  seed:clean:test:generated:
    desc: Clean seed data from test customer database
    cmds:
      - echo "Dropping {{ seed_schema }} schema from test customer database..."
      - docker exec {{ customer_container }} psql -U {{ customer_user | shell }} -d {{ customer_db | shell }} -c "DROP SCHEMA IF EXISTS {{ seed_schema }} CASCADE;"
      - echo "✓ Successfully dropped {{ seed_schema }} schema from test customer database"

  # Both databases seed tasks
  seed:load:all:generated:
    desc: Load seed data into both dev and test customer databases
    cmds:
      - echo "Loading seed data into all customer databases..."
      - task: seed:load:dev:generated
      - task: seed:load:test:generated

  seed:verify:all:generated:
    desc: Verify seed data in both dev and test customer databases
    cmds:
      - task: seed:verify:dev:generated
      - echo ""
      - task: seed:verify:test:generated

  seed:reload:all:generated:
    desc: Reload seed data in both dev and test customer databases
    cmds:
      - task: seed:reload:dev:generated
      - task: seed:reload:test:generated

  seed:clean:all:generated:
    desc: Clean seed data from both dev and test customer databases
    cmds:
      - task: seed:clean:dev:generated
      - task: seed:clean:test:generated
"""

WAIT_TIMEOUT = 90
SEED_PATH = "../db-testkit/testdata/seeds/olist.sql"
SEED_SCHEMA = "stage"
VERIFY_QUERY = (
    "SELECT schemaname, relname as tablename, n_live_tup as row_count "
    "FROM pg_stat_user_tables WHERE schemaname = 'stage' AND relname LIKE 'olist%' ORDER BY relname;"
)


class TaskfileGenerator:
    """
    Generates Taskfile.generated.yml from test-database credentials.
    """
    name = "taskfile"
    default_path = "Taskfile.generated.yml"

    def generate(self, credentials: Credentials, output_path: str,
                 timestamp: Optional[datetime] = None) -> str:
        """
        Renders the Taskfile and writes it to ``output_path``.

        :param credentials: Extracted test-database credentials.
        :param output_path: Destination file, overwritten if present.
        :param timestamp: Generation time; defaults to now.
        :return: The path written.
        """
        content = render_template(
            TASKFILE_TEMPLATE,
            dict(
                credentials.template_context(),
                timestamp=format_timestamp(timestamp),
                customer_container=CUSTOMER_CONTAINER,
                internal_container=INTERNAL_CONTAINER,
                wait_timeout=WAIT_TIMEOUT,
                seed_path=SEED_PATH,
                seed_schema=SEED_SCHEMA,
                verify_query=VERIFY_QUERY,
            ),
        )
        return write_artifact(content, output_path)


def generate_taskfile(credentials: Credentials, output_path: str,
                      timestamp: Optional[datetime] = None) -> str:
    return TaskfileGenerator().generate(credentials, output_path, timestamp)
