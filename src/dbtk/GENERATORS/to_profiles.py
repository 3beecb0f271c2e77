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
Generator for connection-profiles-test.yaml, the connection profile tools use
to reach the customer test database.
"""
from datetime import datetime
from typing import Optional
from ..MODELS.credentials import Credentials
from .base import format_timestamp, render_template, write_artifact

PROFILES_TEMPLATE = """# Connection Profiles for Automated Testing
# 🤖 THIS FILE IS AUTO-GENERATED from docker-compose.yml
# DO NOT EDIT MANUALLY - Run 'dbtk generate profiles' to regenerate
# Generated on: {{ timestamp }}
# ---------------------------------------------------------------------------
connection_profiles:
  # Automated testing environment (references docker-compose.yml)
  {{ profile_name }}:
    type: "postgresql"
    host: {{ customer_host | yaml_str }}
    port: {{ customer_port | yaml_port }}  # From docker-compose.yml db-test-customer port
    user: {{ customer_user | yaml_str }}  # From docker-compose.yml POSTGRES_USER
    password: {{ customer_password | yaml_str }}  # From docker-compose.yml POSTGRES_PASSWORD
    database: {{ customer_db | yaml_str }}  # From docker-compose.yml POSTGRES_DB
    sslmode: "disable"
    target_schema: {{ target_schema | yaml_str }}
"""

PROFILE_NAME = "test"
TARGET_SCHEMA = "daana_dw"


class ConnectionProfilesGenerator:
    """
    Generates the "test" connection profile from the customer database credentials.
    """
    name = "profiles"
    default_path = "config/connection-profiles-test.yaml"

    def generate(self, credentials: Credentials, output_path: str,
                 timestamp: Optional[datetime] = None) -> str:
        content = render_template(
            PROFILES_TEMPLATE,
            dict(
                credentials.template_context(),
                timestamp=format_timestamp(timestamp),
                profile_name=PROFILE_NAME,
                target_schema=TARGET_SCHEMA,
            ),
        )
        return write_artifact(content, output_path)


def generate_connection_profiles(credentials: Credentials, output_path: str,
                                 timestamp: Optional[datetime] = None) -> str:
    return ConnectionProfilesGenerator().generate(credentials, output_path, timestamp)
