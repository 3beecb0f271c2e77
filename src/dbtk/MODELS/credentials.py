"""
The flat credentials record shared by every generator.
"""
from typing import Dict
from pydantic import BaseModel, ConfigDict


class Credentials(BaseModel):
    """
    Connection parameters for the customer and internal test databases.

    Ports are kept as the strings found in the compose file; generators decide
    how to render them.
    """
    model_config = ConfigDict(frozen=True)

    customer_host: str
    customer_port: str
    customer_user: str
    customer_password: str
    customer_db: str

    internal_host: str
    internal_port: str
    internal_user: str
    internal_password: str
    internal_db: str

    def template_context(self) -> Dict[str, str]:
        """
        Returns the fields as a plain dict for template rendering.
        """
        return self.model_dump()
