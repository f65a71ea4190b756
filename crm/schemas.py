# crm/schemas.py
"""Request payloads. Field names are snake_case in Python and camelCase on the wire."""
from __future__ import annotations

from datetime import date
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator
from pydantic.alias_generators import to_camel

from .errors import InvalidInput
from .pagination import DEFAULT_LIMIT, ContactsSorting, Order


class ApiModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra='ignore')


class ConnectRef(ApiModel):
    id: str = Field(min_length=1)


class ConnectList(ApiModel):
    connect: List[ConnectRef] = Field(default_factory=list)


class ContactFields(ApiModel):
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    email: Optional[str] = None
    birthday: Optional[date] = None
    active: Optional[bool] = None
    notes: Optional[str] = None


class CreateContactDto(ContactFields):
    phone: str
    tags: Optional[ConnectList] = None
    groups: Optional[ConnectList] = None


class UpdateContactDto(ContactFields):
    phone: Optional[str] = None
    tags: Optional[ConnectList] = None
    groups: Optional[List[ConnectRef]] = None


class UpsertContactDto(ContactFields):
    phone: str
    tags: List[str] = Field(default_factory=list)


class ContactBulkDto(ApiModel):
    contact_ids: List[str] = Field(alias='contactIDs')


class PaginateQuery(ApiModel):
    search: Optional[str] = None
    sort: Optional[ContactsSorting] = None
    order: Optional[Order] = None
    cursor_id: Optional[str] = Field(default=None, alias='cursorID')
    limit: int = Field(default=DEFAULT_LIMIT, ge=-1)

    @field_validator('limit')
    @classmethod
    def limit_not_zero(cls, value):
        if value == 0:
            raise ValueError('limit must be positive or -1')
        return value


class LoginDto(ApiModel):
    email: str
    password: str


class RefreshDto(BaseModel):
    refresh_token: str


class CreateUserDto(ApiModel):
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    email: str
    password: str = Field(min_length=1)
    role: str = 'User'


class CreateTagDto(ApiModel):
    title: str = Field(min_length=1)


class CreateGroupDto(ApiModel):
    title: str = Field(min_length=1)
    is_inclusive: bool = True
    tags: List[str] = Field(default_factory=list)


def parse(model, data):
    """Validates a payload, turning pydantic errors into a 400 InvalidInput."""
    try:
        return model.model_validate(data or {})
    except ValidationError as e:
        fields = ', '.join(
            '.'.join(str(part) for part in error['loc']) or 'body'
            for error in e.errors()
        )
        raise InvalidInput(f"Validation failed for: {fields}") from e
