"""
User and permission models.

A household has one ``responsible`` user (the administrator) and any number
of ``dependent`` users whose access is limited by a permission set. All
finance data of a household is owned by the responsible user's id.
"""

from enum import Enum
from typing import Optional

from pydantic import (
    BaseModel,
    ConfigDict,
    EmailStr,
    Field,
    SecretStr,
    model_validator,
)

from mzfinance.models.finance import new_id


class UserRole(str, Enum):
    RESPONSIBLE = "responsible"
    DEPENDENT = "dependent"


class Permission(str, Enum):
    """The six independent capabilities a user can hold."""
    EDIT_TRANSACTIONS = "can_edit_transactions"
    VIEW_PATRIMONY = "can_view_patrimony"
    EDIT_PATRIMONY = "can_edit_patrimony"
    EDIT_GOALS = "can_edit_goals"
    ACCESS_REPORTS = "can_access_reports"
    MANAGE_SETTINGS = "can_manage_settings"


class UserPermissions(BaseModel):
    """Capability flags checked by the presentation layer."""

    can_edit_transactions: bool = True
    can_view_patrimony: bool = True
    can_edit_patrimony: bool = False
    can_edit_goals: bool = False
    can_access_reports: bool = True
    can_manage_settings: bool = False

    def allows(self, permission: Permission) -> bool:
        return bool(getattr(self, permission.value))


DEFAULT_DEPENDENT_PERMISSIONS = UserPermissions()

FULL_PERMISSIONS = UserPermissions(
    can_edit_transactions=True,
    can_view_patrimony=True,
    can_edit_patrimony=True,
    can_edit_goals=True,
    can_access_reports=True,
    can_manage_settings=True,
)


class User(BaseModel):
    """
    A user profile.

    The password is only ever handed to the auth backend. It is excluded
    from every serialization, so it never reaches the profile row or the
    local session marker.
    """
    model_config = ConfigDict(str_strip_whitespace=True)

    id: str = Field(default_factory=new_id)
    name: str = Field(..., min_length=1, max_length=100)
    username: str = Field(..., min_length=1, max_length=50)
    email: EmailStr
    role: UserRole = UserRole.RESPONSIBLE
    password: Optional[SecretStr] = Field(default=None, exclude=True)
    permissions: UserPermissions = Field(default_factory=UserPermissions)
    responsible_id: Optional[str] = None

    @model_validator(mode='after')
    def validate_role_reference(self) -> 'User':
        if self.role == UserRole.DEPENDENT and not self.responsible_id:
            raise ValueError("A dependent user must reference its responsible user")
        if self.role == UserRole.RESPONSIBLE and self.responsible_id:
            raise ValueError("A responsible user cannot reference another responsible user")
        return self

    @property
    def is_responsible(self) -> bool:
        return self.role == UserRole.RESPONSIBLE

    @property
    def owner_id(self) -> str:
        """Id that owns the household data this user works on."""
        return self.id if self.is_responsible else self.responsible_id

    def can(self, permission: Permission) -> bool:
        return self.permissions.allows(permission)
