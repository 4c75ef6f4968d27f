"""Shared Pydantic building blocks, the single deserialization boundary.

Every record read from a storage backend passes through a ``WireModel``
subclass, so id canonicalization and date/time clean-up happen here once.
"""

from datetime import date, time
from decimal import Decimal
from typing import Annotated, Any, Optional

from pydantic import BaseModel, BeforeValidator, ConfigDict, PlainSerializer
from pydantic.alias_generators import to_camel

from leaveflow.common.identifiers import (
    canonical_id,
    canonical_leave_type_id,
    date_only,
    optional_canonical_id,
    time_only,
)


def _record_id(raw: Any) -> str:
    return "" if raw is None else str(raw).strip()


def _optional_date(raw: Any) -> Any:
    return date_only(raw) or None


RecordId = Annotated[str, BeforeValidator(_record_id)]
CanonicalId = Annotated[str, BeforeValidator(canonical_id)]
OptionalCanonicalId = Annotated[Optional[str], BeforeValidator(optional_canonical_id)]
LeaveTypeId = Annotated[str, BeforeValidator(canonical_leave_type_id)]
DateOnly = Annotated[date, BeforeValidator(date_only)]
OptionalDateOnly = Annotated[Optional[date], BeforeValidator(_optional_date)]
TimeOnly = Annotated[Optional[time], BeforeValidator(time_only)]
Days = Annotated[Decimal, PlainSerializer(float, return_type=float, when_used="json")]


def upper_text(raw: Any) -> Any:
    return raw.strip().upper() if isinstance(raw, str) else raw


def lower_text(raw: Any) -> Any:
    return raw.strip().lower() if isinstance(raw, str) else raw


class WireModel(BaseModel):
    """Accepts camelCase (wire) or snake_case (ORM / Python) input, dumps camelCase."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
    )

    def to_wire(self, **kwargs) -> dict:
        return self.model_dump(mode="json", by_alias=True, **kwargs)
