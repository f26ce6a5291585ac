# storefront/schemas/admin_user.py
from __future__ import annotations
from typing import List, Optional
from pydantic import BaseModel, ConfigDict, Field, model_validator

class BootstrapAdmin(BaseModel):
    """One entry of the admin-users secret."""

    model_config = ConfigDict(populate_by_name=True)

    username: str = Field(min_length=1)
    password: Optional[str] = None
    password_hash: Optional[str] = Field(default=None, alias="passwordHash")

    @model_validator(mode="after")
    def _needs_secret(self) -> "BootstrapAdmin":
        if not self.password and not self.password_hash:
            raise ValueError(f"bootstrap admin {self.username} requires a password or passwordHash")
        return self

class BootstrapAdmins(BaseModel):
    users: List[BootstrapAdmin] = Field(default_factory=list)

class AdminCreate(BaseModel):
    username: str
    password_hash: str

class AdminUpdate(BaseModel):
    password_hash: str
