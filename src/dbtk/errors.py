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
Exceptions raised while reading compose files, extracting credentials and
writing generated artifacts.
"""


class DBTestkitError(Exception):
    """
    Base class for all errors raised by dbtk.
    """


class ConfigError(DBTestkitError):
    """
    Raised when a DBTK_* setting has an invalid value.
    """


class ReadError(DBTestkitError):
    """
    Raised when the compose file cannot be read.
    """
    def __init__(self, path: str, reason: str):
        self.path = path
        super().__init__(f"failed to read {path}: {reason}")


class ParseError(DBTestkitError):
    """
    Raised when the compose file is not valid YAML or has the wrong shape.
    """


class MissingServiceError(DBTestkitError):
    """
    Raised when a required service is not defined in the compose file.
    """
    def __init__(self, service_name: str):
        self.service_name = service_name
        super().__init__(f"{service_name} service not found in docker-compose.yml")


class GenerationError(DBTestkitError):
    """
    Base class for failures while rendering or writing a generated artifact.
    """


class DirectoryCreateError(GenerationError):
    def __init__(self, path: str, reason: str):
        self.path = path
        super().__init__(f"failed to create directory {path}: {reason}")


class TemplateRenderError(GenerationError):
    pass


class FileWriteError(GenerationError):
    def __init__(self, path: str, reason: str):
        self.path = path
        super().__init__(f"failed to write {path}: {reason}")
