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
Generator for a Python module of test-database connection constants.

Constants follow the ``Default<Entity><Field>`` naming scheme, e.g.
``DefaultCustomerPort``. Ports are written as integers, everything else as
string literals, and the module is passed through black before it is written.
"""
import re
from datetime import datetime
from typing import List, Optional, Tuple
import black
from ..MODELS.credentials import Credentials
from ..errors import TemplateRenderError
from .base import format_timestamp, render_template, write_artifact

CONSTANTS_TEMPLATE = '''# 🤖 THIS FILE IS AUTO-GENERATED from docker-compose.yml
# DO NOT EDIT MANUALLY - Run 'dbtk generate constants' to regenerate
# Generated on: {{ timestamp }}
# ---------------------------------------------------------------------------
"""Connection defaults for the automated testing databases."""
{% for entity, constants in groups %}

# {{ entity }} test database
{% for name, literal in constants -%}
{{ name }} = {{ literal }}
{% endfor -%}
{% endfor %}
'''

ENTITIES = (("Customer", "customer"), ("Internal", "internal"))
FIELDS = (("Host", "host"), ("Port", "port"), ("User", "user"), ("Password", "password"), ("DB", "db"))

_PORT_RE = re.compile(r"[0-9]+")


def constant_name(entity: str, field: str) -> str:
    """
    Returns the constant name for a credentials field, e.g. DefaultInternalDB.
    """
    return f"Default{entity}{field}"


def _literal(attribute: str, value: str) -> str:
    if attribute.endswith("_port"):
        if not _PORT_RE.fullmatch(value):
            raise TemplateRenderError(f"{attribute} {value!r} is not an integer port")
        return str(int(value))
    return repr(value)


def _constant_groups(credentials: Credentials) -> List[Tuple[str, List[Tuple[str, str]]]]:
    groups = []
    for entity, prefix in ENTITIES:
        constants = []
        for field, suffix in FIELDS:
            attribute = f"{prefix}_{suffix}"
            constants.append((constant_name(entity, field), _literal(attribute, getattr(credentials, attribute))))
        groups.append((entity, constants))
    return groups


class ConstantsGenerator:
    """
    Generates a Python constants module from test-database credentials.
    """
    name = "constants"
    default_path = "testdb_defaults.py"

    def generate(self, credentials: Credentials, output_path: str,
                 timestamp: Optional[datetime] = None) -> str:
        """
        Renders the constants module and writes it to ``output_path``.

        :raises TemplateRenderError: If a port is not numeric or the rendered
            module is not valid Python.
        """
        source = render_template(
            CONSTANTS_TEMPLATE,
            dict(timestamp=format_timestamp(timestamp), groups=_constant_groups(credentials)),
        )
        try:
            source = black.format_str(source, mode=black.Mode())
        except black.InvalidInput as e:
            raise TemplateRenderError(f"generated constants are not valid Python: {e}") from e
        return write_artifact(source, output_path)


def generate_constants(credentials: Credentials, output_path: str,
                       timestamp: Optional[datetime] = None) -> str:
    return ConstantsGenerator().generate(credentials, output_path, timestamp)
