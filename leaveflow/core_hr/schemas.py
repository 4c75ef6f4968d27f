"""Core HR Pydantic v2 schemas for employees.

Naming conventions:
  - *Create / *Update  → write payloads sent to a storage backend
  - *Out               → canonical records read back from a backend
"""

import json
from decimal import Decimal
from typing import Annotated, Any, Optional

from pydantic import AliasChoices, BeforeValidator, Field, field_validator, model_validator

from leaveflow.common.constants import GenderType, UserRole
from leaveflow.common.identifiers import quota_key
from leaveflow.common.schemas import (
    CanonicalId,
    Days,
    OptionalCanonicalId,
    OptionalDateOnly,
    WireModel,
    lower_text,
    upper_text,
)


def _quota_map(raw: Any) -> Any:
    """Accept quota maps keyed by wire ("vacation") or category ids ("VACATION")."""
    if raw is None or raw == "":
        return {}
    if isinstance(raw, str):
        raw = json.loads(raw)
    if isinstance(raw, dict):
        return {quota_key(k): v for k, v in raw.items() if v is not None}
    return raw


Role = Annotated[UserRole, BeforeValidator(upper_text)]
Gender = Annotated[GenderType, BeforeValidator(lower_text)]
Quotas = Annotated[dict[str, Days], BeforeValidator(_quota_map)]

_MANAGER_ID = AliasChoices("managerId", "manager_id")
_JOIN_DATE = AliasChoices("joinDate", "join_date")


# ═════════════════════════════════════════════════════════════════════
# Employee: read schema
# ═════════════════════════════════════════════════════════════════════


class EmployeeOut(WireModel):
    """Canonical employee record."""

    id: CanonicalId
    name: str = ""
    email: str = ""
    role: Role = UserRole.employee
    gender: Gender = GenderType.male
    department: str = ""
    join_date: OptionalDateOnly = Field(default=None, validation_alias=_JOIN_DATE)
    manager_id: OptionalCanonicalId = Field(default=None, validation_alias=_MANAGER_ID)
    quotas: Quotas = Field(default_factory=dict)

    @field_validator("department", "email", "name", mode="before")
    @classmethod
    def _none_to_empty(cls, v: Any) -> Any:
        return "" if v is None else v

    @model_validator(mode="after")
    def _drop_self_manager(self) -> "EmployeeOut":
        if self.manager_id is not None and self.manager_id == self.id:
            self.manager_id = None
        return self

    @property
    def is_admin(self) -> bool:
        return self.role is UserRole.admin

    def quota_for(self, leave_type_id: str) -> Optional[Decimal]:
        return self.quotas.get(leave_type_id)


# ═════════════════════════════════════════════════════════════════════
# Employee: write schemas
# ═════════════════════════════════════════════════════════════════════


class EmployeeCreate(WireModel):
    """Payload for creating an employee; ``id`` is assigned by the caller."""

    id: OptionalCanonicalId = None
    name: str = Field(..., min_length=1)
    email: str = ""
    role: Role = UserRole.employee
    gender: Gender = GenderType.male
    department: str = ""
    join_date: OptionalDateOnly = Field(default=None, validation_alias=_JOIN_DATE)
    manager_id: OptionalCanonicalId = Field(default=None, validation_alias=_MANAGER_ID)
    quotas: Quotas = Field(default_factory=dict)


class EmployeeUpdate(WireModel):
    """Partial employee update; only fields explicitly set are written."""

    name: Optional[str] = None
    email: Optional[str] = None
    role: Optional[Role] = None
    gender: Optional[Gender] = None
    department: Optional[str] = None
    join_date: OptionalDateOnly = Field(default=None, validation_alias=_JOIN_DATE)
    manager_id: OptionalCanonicalId = Field(default=None, validation_alias=_MANAGER_ID)
    quotas: Optional[Quotas] = None

    def changes(self) -> dict[str, Any]:
        """Snake-case dict of the fields the caller set."""
        return self.model_dump(exclude_unset=True)
