"""
Models for the parts of a docker-compose file that credential extraction reads.
"""
from typing import Dict, List, Optional
from pydantic import BaseModel, ConfigDict


class ServiceSpec(BaseModel):
    """
    A single compose service, reduced to its environment and port mappings.
    """
    model_config = ConfigDict(frozen=True)

    environment: Dict[str, str] = {}
    ports: List[str] = []  # raw "host:container" strings, in file order

    def env(self, key: str) -> Optional[str]:
        """
        Looks up an environment variable by exact name.

        :param key: Variable name, e.g. POSTGRES_USER.
        :return: The value, or None if the service does not define it.
        """
        return self.environment.get(key)


class ComposeDocument(BaseModel):
    """
    A parsed compose file: service name to service definition.
    """
    model_config = ConfigDict(frozen=True)

    services: Dict[str, ServiceSpec] = {}

    def get_service(self, name: str) -> Optional[ServiceSpec]:
        """
        Looks up a service by exact name.

        :param name: The service key as written in the compose file.
        :return: The service, or None if it is not defined.
        """
        return self.services.get(name)
