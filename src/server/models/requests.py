"""Request models for the polling endpoints."""
from typing import Annotated, Any, Literal

from pydantic import BaseModel, Field

from src.relay.models.session import Role

RoleName = Literal["host", "client"]


class RoleRequest(BaseModel):
    role: Annotated[RoleName, Field()]

    @property
    def as_role(self) -> Role:
        return Role(self.role)


class SendRequest(RoleRequest):
    data: Any = None
