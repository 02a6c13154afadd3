"""Data access operations for contacts and phones.

This module contains the SQLAlchemy queries of the address book,
isolated from the service layer and from FastAPI route handlers.
Functions here only flush; committing (and translating database
errors) is the job of :class:`addressbook.services.AddressBookService`.
"""

from collections import defaultdict
from datetime import datetime
from typing import Iterable

from sqlalchemy import select, update, delete, or_
from sqlalchemy.orm import Session

from . import models, schemas

SORT_FIELDS = {
    "id": models.Contact.id,
    "firstName": models.Contact.first_name,
    "first_name": models.Contact.first_name,
    "lastName": models.Contact.last_name,
    "last_name": models.Contact.last_name,
    "createdAt": models.Contact.created_at,
    "created_at": models.Contact.created_at,
    "updatedAt": models.Contact.updated_at,
    "updated_at": models.Contact.updated_at,
}
"""Contact columns a listing may be ordered by, keyed by accepted names."""


def get_contacts(db: Session) -> list[models.Contact]:
    """
    Retrieve every contact.

    Args:
        db (Session): Database session.

    Returns:
        list[Contact]: All contacts, in storage order.
    """
    return list(db.scalars(select(models.Contact)).all())


def get_contacts_sorted(
    db: Session, field: str, direction: str
) -> list[models.Contact]:
    """
    Retrieve every contact ordered by a single column.

    Args:
        db (Session): Database session.
        field (str): Column name, camelCase or snake_case (see ``SORT_FIELDS``).
        direction (str): ``ASC`` or ``DESC``, case insensitive.

    Raises:
        ValueError: If the field or the direction is not supported.

    Returns:
        list[Contact]: All contacts in the requested order.
    """
    column = SORT_FIELDS.get(field)
    if column is None:
        raise ValueError(f"cannot order contacts by '{field}'")

    normalized = direction.upper()
    if normalized == "ASC":
        order = column.asc()
    elif normalized == "DESC":
        order = column.desc()
    else:
        raise ValueError(f"unknown sort direction '{direction}', use ASC or DESC")

    return list(db.scalars(select(models.Contact).order_by(order)).all())


def _search(db: Session, first_name_clause, last_name_clause) -> list[models.Contact]:
    stmt = (
        select(models.Contact)
        .where(or_(first_name_clause, last_name_clause))
        .order_by(models.Contact.first_name.asc())
    )
    return list(db.scalars(stmt).all())


def search_contacts_starting_with(db: Session, term: str) -> list[models.Contact]:
    """Contacts whose first or last name starts with ``term``."""
    return _search(
        db,
        models.Contact.first_name.startswith(term, autoescape=True),
        models.Contact.last_name.startswith(term, autoescape=True),
    )


def search_contacts_containing(db: Session, term: str) -> list[models.Contact]:
    """Contacts whose first or last name contains ``term``."""
    return _search(
        db,
        models.Contact.first_name.contains(term, autoescape=True),
        models.Contact.last_name.contains(term, autoescape=True),
    )


def search_contacts_ending_with(db: Session, term: str) -> list[models.Contact]:
    """Contacts whose first or last name ends with ``term``."""
    return _search(
        db,
        models.Contact.first_name.endswith(term, autoescape=True),
        models.Contact.last_name.endswith(term, autoescape=True),
    )


def get_contact(db: Session, contact_id: int) -> models.Contact | None:
    """
    Retrieve a contact by primary key.

    Args:
        db (Session): Database session.
        contact_id (int): Contact identifier.

    Returns:
        Contact | None: Contact if found, otherwise ``None``.
    """
    return db.execute(
        select(models.Contact).where(models.Contact.id == contact_id)
    ).scalar_one_or_none()


def get_phone(db: Session, phone_id: int) -> models.Phone | None:
    """
    Retrieve a phone by primary key.

    Args:
        db (Session): Database session.
        phone_id (int): Phone identifier.

    Returns:
        Phone | None: Phone if found, otherwise ``None``.
    """
    return db.execute(
        select(models.Phone).where(models.Phone.id == phone_id)
    ).scalar_one_or_none()


def get_phones_by_contact(db: Session, contact_id: int) -> list[models.Phone]:
    """Phones owned by one contact, ordered by identifier."""
    stmt = (
        select(models.Phone)
        .where(models.Phone.contact_id == contact_id)
        .order_by(models.Phone.id)
    )
    return list(db.scalars(stmt).all())


def get_phones_by_contacts(
    db: Session, contact_ids: Iterable[int]
) -> dict[int, list[models.Phone]]:
    """
    Load the phones of several contacts with a single query.

    Args:
        db (Session): Database session.
        contact_ids (Iterable[int]): Owning contact identifiers.

    Returns:
        dict[int, list[Phone]]: Phones grouped by ``contact_id``. Contacts
        without phones are absent from the mapping.
    """
    ids = list(contact_ids)
    grouped: dict[int, list[models.Phone]] = defaultdict(list)
    if not ids:
        return grouped

    stmt = (
        select(models.Phone)
        .where(models.Phone.contact_id.in_(ids))
        .order_by(models.Phone.id)
    )
    for phone in db.scalars(stmt):
        grouped[phone.contact_id].append(phone)
    return grouped


def get_phone_owner(db: Session, phone: models.Phone) -> models.Contact | None:
    """Contact referenced by ``phone.contact_id``."""
    return get_contact(db, phone.contact_id)


def create_contact(
    db: Session,
    contact_in: schemas.ContactBase,
    created_at: datetime,
    contact_id: int | None = None,
    updated_at: datetime | None = None,
) -> models.Contact:
    """
    Insert a new contact.

    Args:
        db (Session): Database session.
        contact_in (ContactBase): Contact data.
        created_at (datetime): Creation timestamp.
        contact_id (int | None): Explicit identifier; generated by storage
            when omitted.
        updated_at (datetime | None): Initial update timestamp.

    Returns:
        Contact: Flushed contact with its identifier assigned.
    """
    contact = models.Contact(
        id=contact_id,
        first_name=contact_in.first_name,
        last_name=contact_in.last_name,
        created_at=created_at,
        updated_at=updated_at,
    )
    db.add(contact)
    db.flush()
    return contact


def create_phone(
    db: Session,
    phone_in: schemas.PhoneBase,
    created_at: datetime,
    phone_id: int | None = None,
    updated_at: datetime | None = None,
) -> models.Phone:
    """
    Insert a new phone.

    Args:
        db (Session): Database session.
        phone_in (PhoneBase): Phone data, including the owning contact id.
        created_at (datetime): Creation timestamp.
        phone_id (int | None): Explicit identifier; generated by storage
            when omitted.
        updated_at (datetime | None): Initial update timestamp.

    Returns:
        Phone: Flushed phone with its identifier assigned.
    """
    phone = models.Phone(
        id=phone_id,
        contact_id=phone_in.contact_id,
        number=phone_in.number,
        created_at=created_at,
        updated_at=updated_at,
    )
    db.add(phone)
    db.flush()
    return phone


def replace_contact(
    db: Session,
    contact: models.Contact,
    contact_in: schemas.ContactBase,
    updated_at: datetime,
) -> models.Contact:
    """
    Overwrite every writable column of a contact.

    ``created_at`` is left untouched.
    """
    contact.first_name = contact_in.first_name
    contact.last_name = contact_in.last_name
    contact.updated_at = updated_at
    db.flush()
    return contact


def replace_phone(
    db: Session,
    phone: models.Phone,
    phone_in: schemas.PhoneBase,
    updated_at: datetime,
) -> models.Phone:
    """
    Overwrite every writable column of a phone.

    ``created_at`` is left untouched.
    """
    phone.contact_id = phone_in.contact_id
    phone.number = phone_in.number
    phone.updated_at = updated_at
    db.flush()
    return phone


def _update_column(db: Session, model, record_id: int, values: dict) -> int:
    result = db.execute(update(model).where(model.id == record_id).values(**values))
    return result.rowcount


def update_contact_first_name(
    db: Session, contact_id: int, first_name: str, updated_at: datetime
) -> int:
    """
    Set only the first name (and the update timestamp) of a contact.

    Returns:
        int: Number of rows changed, ``0`` when the contact does not exist.
    """
    return _update_column(
        db,
        models.Contact,
        contact_id,
        {"first_name": first_name, "updated_at": updated_at},
    )


def update_contact_last_name(
    db: Session, contact_id: int, last_name: str, updated_at: datetime
) -> int:
    """
    Set only the last name (and the update timestamp) of a contact.

    Returns:
        int: Number of rows changed, ``0`` when the contact does not exist.
    """
    return _update_column(
        db,
        models.Contact,
        contact_id,
        {"last_name": last_name, "updated_at": updated_at},
    )


def update_phone_number(
    db: Session, phone_id: int, number: str, updated_at: datetime
) -> int:
    """
    Set only the number (and the update timestamp) of a phone.

    Returns:
        int: Number of rows changed, ``0`` when the phone does not exist.
    """
    return _update_column(
        db,
        models.Phone,
        phone_id,
        {"number": number, "updated_at": updated_at},
    )


def delete_contact(db: Session, contact: models.Contact) -> None:
    """
    Delete a contact and every phone it owns.

    The phones are removed with an explicit statement so no orphan is
    left behind even on engines that do not enforce ``ON DELETE CASCADE``.

    Args:
        db (Session): Database session.
        contact (Contact): Contact to delete.
    """
    db.execute(delete(models.Phone).where(models.Phone.contact_id == contact.id))
    db.delete(contact)
    db.flush()


def delete_phone(db: Session, phone: models.Phone) -> None:
    """
    Delete a phone from the database.

    Args:
        db (Session): Database session.
        phone (Phone): Phone to delete.
    """
    db.delete(phone)
    db.flush()
