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
Parser for the docker-compose.yml file that defines the test databases.
"""
import logging
import yaml
from typing import Dict, Any, List
from ..MODELS.compose_document import ComposeDocument, ServiceSpec
from ..errors import ReadError, ParseError

logger = logging.getLogger(__name__)


class ComposeParser:
    """
    Parser for docker-compose.yml files.

    Only service environments and port mappings are read; every other key is
    ignored. Values are taken verbatim, without ${VAR} interpolation.
    """

    def parse(self, compose_path: str) -> ComposeDocument:
        """
        Parses a compose file from a path.

        :param compose_path: Path to the compose file.
        :return: Parsed document.
        :raises ReadError: If the file is missing or unreadable.
        :raises ParseError: If the content is not a valid compose document.
        """
        try:
            with open(compose_path, 'r', encoding='utf-8') as f:
                content = f.read()
        except (OSError, UnicodeDecodeError) as e:
            raise ReadError(str(compose_path), str(e)) from e
        logger.debug("Read %d bytes from %s", len(content), compose_path)
        return self.parse_from_string(content)

    def parse_from_string(self, content: str) -> ComposeDocument:
        """
        Parses a compose file from a string.

        :param content: YAML content of the compose file.
        :return: Parsed document.
        :raises ParseError: If the content is not a valid compose document.
        """
        try:
            data = yaml.safe_load(content)
        except (yaml.YAMLError, ValueError) as e:
            raise ParseError(f"failed to parse docker-compose.yml: {e}") from e

        if data is None:
            data = {}
        if not isinstance(data, dict):
            raise ParseError("failed to parse docker-compose.yml: top level must be a mapping")

        services_spec = data.get('services') or {}
        if not isinstance(services_spec, dict):
            raise ParseError("failed to parse docker-compose.yml: 'services' must be a mapping")

        services = {}
        for name, spec in services_spec.items():
            services[str(name)] = self._parse_service(str(name), spec)

        return ComposeDocument(services=services)

    def _parse_service(self, name: str, spec: Any) -> ServiceSpec:
        """
        Parses a single service definition.

        :param name: The name of the service.
        :param spec: The service body from the compose file.
        :return: A ServiceSpec instance.
        """
        if spec is None:
            spec = {}
        if not isinstance(spec, dict):
            raise ParseError(f"failed to parse docker-compose.yml: service '{name}' must be a mapping")

        return ServiceSpec(
            environment=self._parse_environment(name, spec.get('environment')),
            ports=self._parse_ports(name, spec.get('ports')),
        )

    def _parse_environment(self, name: str, env_spec: Any) -> Dict[str, str]:
        """
        Accepts both the mapping form and the ["KEY=value"] list form.
        """
        environment: Dict[str, str] = {}
        if env_spec is None:
            return environment

        if isinstance(env_spec, dict):
            for k, v in env_spec.items():
                environment[str(k)] = self._to_str(v)
        elif isinstance(env_spec, list):
            for e in env_spec:
                e = str(e)
                if '=' in e:
                    k, v = e.split('=', 1)
                    environment[k] = v
        else:
            raise ParseError(
                f"failed to parse docker-compose.yml: environment of service '{name}' must be a mapping or a list"
            )
        return environment

    def _parse_ports(self, name: str, ports_spec: Any) -> List[str]:
        """
        Normalizes port entries to "host:container" strings, keeping file order.
        """
        ports: List[str] = []
        if ports_spec is None:
            return ports
        if not isinstance(ports_spec, list):
            raise ParseError(f"failed to parse docker-compose.yml: ports of service '{name}' must be a list")

        for p in ports_spec:
            if isinstance(p, dict):
                target = p.get('target')
                published = p.get('published')
                if published is not None and target is not None:
                    ports.append(f"{published}:{target}")
                elif target is not None:
                    ports.append(str(target))
            else:
                ports.append(str(p))
        return ports

    @staticmethod
    def _to_str(val: Any) -> str:
        """
        Stringifies a YAML scalar the way compose passes it to the container.
        """
        if val is None:
            return ""
        if isinstance(val, bool):
            return "true" if val else "false"
        return str(val)
