from datetime import datetime
from typing import Generic, List, Optional, TypeVar

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel

T = TypeVar("T")


class CamelModel(BaseModel):
    """Base schema exchanging camelCase JSON while accepting snake_case too."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
    )


class ContactBase(CamelModel):
    """Shared fields for contact schemas."""

    first_name: str
    last_name: str


class ContactCreate(ContactBase):
    """Schema for creating a new contact."""

    pass


class ContactUpdate(ContactBase):
    """Schema for replacing every writable field of a contact."""

    pass


class ContactFirstName(CamelModel):
    """Payload for changing only the first name of a contact."""

    first_name: str


class ContactLastName(CamelModel):
    """Payload for changing only the last name of a contact."""

    last_name: str


class PhoneBase(CamelModel):
    """Shared fields for phone schemas."""

    contact_id: int
    number: str


class PhoneCreate(PhoneBase):
    """Schema for registering a phone number for a contact."""

    pass


class PhoneUpdate(PhoneBase):
    """Schema for replacing every writable field of a phone."""

    pass


class PhoneNumber(CamelModel):
    """Payload for changing only the number of a phone."""

    number: str


class PhoneOut(PhoneBase):
    """Schema for returning a phone.

    The owning contact is referenced by ``contactId`` only.
    """

    id: int
    created_at: datetime
    updated_at: Optional[datetime] = None


class ContactOut(ContactBase):
    """Schema for returning a contact together with its phones."""

    id: int
    created_at: datetime
    updated_at: Optional[datetime] = None
    phones: List[PhoneOut] = []


class Envelope(BaseModel, Generic[T]):
    """Uniform wrapper around every API response.

    A new instance is built for each response.
    """

    error: bool = False
    message: str = ""
    data: Optional[T] = None
