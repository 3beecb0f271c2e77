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
Settings read from DBTK_* environment variables and an optional .env file.
"""
import os
from typing import Dict, Mapping, Optional
from dotenv import dotenv_values
from pydantic import BaseModel, ConfigDict, Field, ValidationError
from .errors import ConfigError

ENV_PREFIX = "DBTK_"


class Settings(BaseModel):
    """
    Defaults for the CLI. Command line options override these.
    """
    model_config = ConfigDict(frozen=True)

    compose_file: str = "docker-compose.yml"
    taskfile_path: str = "Taskfile.generated.yml"
    constants_path: str = "testdb_defaults.py"
    profiles_path: str = "config/connection-profiles-test.yaml"
    wait_timeout: int = Field(default=90, gt=0)
    docker_bin: str = "docker"
    log_level: str = "WARNING"

    def output_path(self, generator_name: str) -> str:
        """
        Returns the configured output path for a generator.
        """
        return {
            "taskfile": self.taskfile_path,
            "constants": self.constants_path,
            "profiles": self.profiles_path,
        }[generator_name]


def _collect(values: Mapping[str, Optional[str]]) -> Dict[str, str]:
    collected = {}
    for key, value in values.items():
        if key.startswith(ENV_PREFIX) and value is not None:
            collected[key[len(ENV_PREFIX):].lower()] = value
    return collected


def load_settings(env_file: Optional[str] = ".env",
                  environ: Optional[Mapping[str, str]] = None) -> Settings:
    """
    Loads settings. The process environment wins over the .env file.

    :param env_file: Path to a dotenv file; skipped if missing or None.
    :param environ: Environment to read instead of os.environ.
    :return: Validated settings.
    :raises ConfigError: If a value fails validation.
    """
    values: Dict[str, str] = {}
    if env_file and os.path.exists(env_file):
        values.update(_collect(dotenv_values(env_file)))
    values.update(_collect(os.environ if environ is None else environ))

    known = {k: v for k, v in values.items() if k in Settings.model_fields}
    try:
        return Settings(**known)
    except ValidationError as e:
        raise ConfigError(f"invalid {ENV_PREFIX}* setting: {e}") from e
