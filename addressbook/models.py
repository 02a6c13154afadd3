"""Database models for the address book.

This module defines the SQLAlchemy ORM models used by the application.
The models declare no ``relationship()``: the phones of a contact are
loaded with an explicit query keyed by ``Phone.contact_id`` (see
:mod:`addressbook.crud`).
"""

from sqlalchemy import (
    Column,
    Integer,
    String,
    DateTime,
    ForeignKey,
    UniqueConstraint,
)

from .database import Base


class Contact(Base):
    """
    SQLAlchemy model representing a person in the address book.

    ``created_at`` is written once on insert; ``updated_at`` is refreshed
    by every mutation and stays ``NULL`` until the first one.
    """

    __tablename__ = "contact"

    id = Column(Integer, primary_key=True, index=True)
    first_name = Column(String(100), nullable=False, index=True)
    last_name = Column(String(100), nullable=False, index=True)
    created_at = Column(DateTime, nullable=False)
    updated_at = Column(DateTime, nullable=True)

    def __repr__(self) -> str:
        return (
            f"Contact(id={self.id!r}, first_name={self.first_name!r}, "
            f"last_name={self.last_name!r})"
        )


class Phone(Base):
    """
    SQLAlchemy model representing a phone number.

    Each phone belongs to exactly one contact and is removed by the
    database together with it.

    ``uq_phone_contact_number`` is a deployment schema assumption on top of
    the contact/phone shape: a contact cannot own the same number twice, and
    that duplicate is what surfaces as "the record is already registered".
    """

    __tablename__ = "phone"
    __table_args__ = (
        UniqueConstraint("contact_id", "number", name="uq_phone_contact_number"),
    )

    id = Column(Integer, primary_key=True, index=True)

    #: Identifier of the owning contact
    contact_id = Column(
        Integer,
        ForeignKey("contact.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )

    number = Column(String(30), nullable=False)
    created_at = Column(DateTime, nullable=False)
    updated_at = Column(DateTime, nullable=True)

    def __repr__(self) -> str:
        return (
            f"Phone(id={self.id!r}, contact_id={self.contact_id!r}, "
            f"number={self.number!r})"
        )
