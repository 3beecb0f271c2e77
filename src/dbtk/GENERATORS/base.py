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
Shared rendering and file writing for the generated artifacts.

Every generator has the same shape: take a Credentials record and an output
path, render a fixed template stamped with the generation time, and write the
result over whatever was at that path.
"""
import json
import logging
import os
import shlex
from datetime import datetime
from typing import Any, Dict, Optional, Protocol
from jinja2 import Environment, StrictUndefined, TemplateError
from ..MODELS.credentials import Credentials
from ..errors import DirectoryCreateError, FileWriteError, TemplateRenderError

logger = logging.getLogger(__name__)

TIMESTAMP_FORMAT = "%Y-%m-%d %H:%M:%S %Z"


class ArtifactGenerator(Protocol):
    """
    Renders one artifact from a Credentials record.
    """
    name: str
    default_path: str

    def generate(self, credentials: Credentials, output_path: str,
                 timestamp: Optional[datetime] = None) -> str:
        ...


def yaml_string(value: Any) -> str:
    """
    Renders a value as a double-quoted YAML scalar.
    """
    return json.dumps(str(value), ensure_ascii=False)


def yaml_port(value: Any) -> str:
    """
    Renders a port as a bare integer when it is one, quoted otherwise.
    """
    value = str(value)
    if value.isascii() and value.isdigit():
        return str(int(value))
    return yaml_string(value)


def _build_environment() -> Environment:
    env = Environment(undefined=StrictUndefined, keep_trailing_newline=True, autoescape=False)
    env.filters['yaml_str'] = yaml_string
    env.filters['yaml_port'] = yaml_port
    env.filters['shell'] = lambda value: shlex.quote(str(value))
    return env


_ENVIRONMENT = _build_environment()


def format_timestamp(timestamp: Optional[datetime] = None) -> str:
    """
    Formats the generation time, defaulting to now in the local timezone.
    """
    if timestamp is None:
        timestamp = datetime.now().astimezone()
    return timestamp.strftime(TIMESTAMP_FORMAT).strip()


def render_template(source: str, context: Dict[str, Any]) -> str:
    """
    Renders a template string. Undefined variables are errors.

    :param source: Jinja2 template source.
    :param context: Template variables.
    :return: The rendered text.
    :raises TemplateRenderError: If the template fails to compile or render.
    """
    try:
        return _ENVIRONMENT.from_string(source).render(**context)
    except TemplateError as e:
        raise TemplateRenderError(f"failed to render template: {e}") from e


def write_artifact(content: str, output_path: str) -> str:
    """
    Writes rendered content, creating parent directories as needed.

    The write is not atomic: a failure partway may leave a truncated file.

    :param content: Text to write.
    :param output_path: Destination file, overwritten if present.
    :return: The path written.
    """
    output_path = os.fspath(output_path)
    directory = os.path.dirname(output_path)
    if directory:
        try:
            os.makedirs(directory, exist_ok=True)
        except OSError as e:
            raise DirectoryCreateError(directory, str(e)) from e

    try:
        with open(output_path, 'w', encoding='utf-8', newline='\n') as f:
            f.write(content)
    except OSError as e:
        raise FileWriteError(output_path, str(e)) from e

    logger.info("Wrote %s (%d bytes)", output_path, len(content.encode('utf-8')))
    return output_path
