"""Service layer of the address book.

:class:`AddressBookService` wraps every operation in a single database
transaction, stamps creation and update timestamps, assembles contacts
together with their phones and reports missing records as ``None``.
"""

import logging
from contextlib import contextmanager
from datetime import datetime, timezone
from typing import Iterator

from fastapi import Depends
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from . import crud, models, schemas
from .core import get_settings
from .database import get_db
from .errors import translate_storage_error

logger = logging.getLogger(__name__)


def utcnow() -> datetime:
    """Current time as a naive UTC timestamp, the form stored in the database."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


def phone_out(phone: models.Phone) -> schemas.PhoneOut:
    """Build the response schema of a stored phone."""
    return schemas.PhoneOut(
        id=phone.id,
        contact_id=phone.contact_id,
        number=phone.number,
        created_at=phone.created_at,
        updated_at=phone.updated_at,
    )


class AddressBookService:
    """
    Contacts and phones operations used by the API routers.

    :param db: Database session, used for the lifetime of one request.
    :param upsert_on_put: When ``True`` a full update of a missing id
        inserts a row with that id; when ``False`` it returns ``None``.
    """

    def __init__(self, db: Session, upsert_on_put: bool = True):
        self.db = db
        self.upsert_on_put = upsert_on_put

    @contextmanager
    def _transaction(self) -> Iterator[Session]:
        """Commit on success; roll back and translate storage errors."""
        try:
            yield self.db
            self.db.commit()
        except SQLAlchemyError as exc:
            self.db.rollback()
            raise translate_storage_error(exc) from exc
        except Exception:
            self.db.rollback()
            raise

    def _contacts_out(self, contacts: list[models.Contact]) -> list[schemas.ContactOut]:
        phones = crud.get_phones_by_contacts(self.db, [c.id for c in contacts])
        return [self._contact_out(c, phones.get(c.id, [])) for c in contacts]

    def _contact_out(
        self, contact: models.Contact, phones: list[models.Phone] | None = None
    ) -> schemas.ContactOut:
        if phones is None:
            phones = crud.get_phones_by_contact(self.db, contact.id)
        return schemas.ContactOut(
            id=contact.id,
            first_name=contact.first_name,
            last_name=contact.last_name,
            created_at=contact.created_at,
            updated_at=contact.updated_at,
            phones=[phone_out(p) for p in phones],
        )

    def list_contacts(self) -> list[schemas.ContactOut]:
        """Every contact with its phones."""
        with self._transaction() as db:
            return self._contacts_out(crud.get_contacts(db))

    def list_contacts_sorted(
        self, field: str, direction: str
    ) -> list[schemas.ContactOut]:
        """
        Every contact with its phones, ordered by ``field``.

        Raises:
            ValueError: If the field or the direction is not supported.
        """
        with self._transaction() as db:
            return self._contacts_out(crud.get_contacts_sorted(db, field, direction))

    def search_contacts(self, term: str) -> list[schemas.ContactOut]:
        """
        Find contacts whose first or last name starts with, contains or
        ends with ``term``.

        The three queries are merged by contact id, so a contact matching
        more than one of them is returned once. The result has no
        guaranteed order.
        """
        with self._transaction() as db:
            found: dict[int, models.Contact] = {}
            for query in (
                crud.search_contacts_starting_with,
                crud.search_contacts_containing,
                crud.search_contacts_ending_with,
            ):
                for contact in query(db, term):
                    found.setdefault(contact.id, contact)
            return self._contacts_out(list(found.values()))

    def get_contact(self, contact_id: int) -> schemas.ContactOut | None:
        with self._transaction() as db:
            contact = crud.get_contact(db, contact_id)
            return self._contact_out(contact) if contact else None

    def get_phone_owner(self, phone_id: int) -> schemas.ContactOut | None:
        """Contact owning the phone ``phone_id``, ``None`` if the phone is unknown."""
        with self._transaction() as db:
            phone = crud.get_phone(db, phone_id)
            if phone is None:
                return None
            owner = crud.get_phone_owner(db, phone)
            return self._contact_out(owner) if owner else None

    def create_contact(self, contact_in: schemas.ContactCreate) -> schemas.ContactOut:
        """Persist a new contact stamped with the current time."""
        logger.info("Creating contact %s %s", contact_in.first_name, contact_in.last_name)
        with self._transaction() as db:
            contact = crud.create_contact(db, contact_in, created_at=utcnow())
            return self._contact_out(contact, [])

    def create_phone(self, phone_in: schemas.PhoneCreate) -> schemas.PhoneOut:
        """
        Persist a new phone stamped with the current time.

        Raises:
            MissingReferenceError: If the owning contact does not exist.
            DuplicateRecordError: If the contact already has this number.
        """
        logger.info("Creating phone %s for contact %s", phone_in.number, phone_in.contact_id)
        with self._transaction() as db:
            phone = crud.create_phone(db, phone_in, created_at=utcnow())
            return phone_out(phone)

    def update_contact(
        self, contact_id: int, contact_in: schemas.ContactUpdate
    ) -> schemas.ContactOut | None:
        """
        Replace every writable field of contact ``contact_id``.

        A missing id is inserted with that id when ``upsert_on_put`` is
        set, otherwise ``None`` is returned and nothing is written.
        """
        now = utcnow()
        with self._transaction() as db:
            contact = crud.get_contact(db, contact_id)
            if contact is not None:
                contact = crud.replace_contact(db, contact, contact_in, updated_at=now)
            elif self.upsert_on_put:
                logger.info("Contact %s does not exist, inserting it", contact_id)
                contact = crud.create_contact(
                    db, contact_in, created_at=now, contact_id=contact_id, updated_at=now
                )
            else:
                return None
            logger.info("Updated contact %s", contact_id)
            return self._contact_out(contact)

    def update_phone(
        self, phone_id: int, phone_in: schemas.PhoneUpdate
    ) -> schemas.PhoneOut | None:
        """
        Replace every writable field of phone ``phone_id``.

        Missing ids follow the same rule as :meth:`update_contact`.
        """
        now = utcnow()
        with self._transaction() as db:
            phone = crud.get_phone(db, phone_id)
            if phone is not None:
                phone = crud.replace_phone(db, phone, phone_in, updated_at=now)
            elif self.upsert_on_put:
                logger.info("Phone %s does not exist, inserting it", phone_id)
                phone = crud.create_phone(
                    db, phone_in, created_at=now, phone_id=phone_id, updated_at=now
                )
            else:
                return None
            logger.info("Updated phone %s", phone_id)
            return phone_out(phone)

    def update_contact_first_name(
        self, contact_id: int, data: schemas.ContactFirstName
    ) -> schemas.ContactOut | None:
        """Change only the first name; ``None`` if the contact does not exist."""
        with self._transaction() as db:
            if not crud.update_contact_first_name(db, contact_id, data.first_name, utcnow()):
                return None
            return self._contact_out(crud.get_contact(db, contact_id))

    def update_contact_last_name(
        self, contact_id: int, data: schemas.ContactLastName
    ) -> schemas.ContactOut | None:
        """Change only the last name; ``None`` if the contact does not exist."""
        with self._transaction() as db:
            if not crud.update_contact_last_name(db, contact_id, data.last_name, utcnow()):
                return None
            return self._contact_out(crud.get_contact(db, contact_id))

    def update_phone_number(
        self, phone_id: int, data: schemas.PhoneNumber
    ) -> schemas.PhoneOut | None:
        """Change only the number; ``None`` if the phone does not exist."""
        with self._transaction() as db:
            if not crud.update_phone_number(db, phone_id, data.number, utcnow()):
                return None
            return phone_out(crud.get_phone(db, phone_id))

    def delete_contact(self, contact_id: int) -> schemas.ContactOut | None:
        """
        Delete a contact and its phones.

        Returns:
            ContactOut | None: State of the contact (with the phones it had)
            before deletion, or ``None`` if it does not exist.
        """
        with self._transaction() as db:
            contact = crud.get_contact(db, contact_id)
            if contact is None:
                return None
            deleted = self._contact_out(contact)
            crud.delete_contact(db, contact)
            logger.info("Deleted contact %s and %d phone(s)", contact_id, len(deleted.phones))
            return deleted

    def delete_phone(self, phone_id: int) -> schemas.PhoneOut | None:
        """
        Delete a phone.

        Returns:
            PhoneOut | None: State of the phone before deletion, or ``None``
            if it does not exist.
        """
        with self._transaction() as db:
            phone = crud.get_phone(db, phone_id)
            if phone is None:
                return None
            deleted = phone_out(phone)
            crud.delete_phone(db, phone)
            logger.info("Deleted phone %s", phone_id)
            return deleted


def get_service(db: Session = Depends(get_db)) -> AddressBookService:
    """
    FastAPI dependency building a service bound to the request's session.

    Args:
        db (Session): Database session of the current request.

    Returns:
        AddressBookService: Service configured from the application settings.
    """
    return AddressBookService(db, upsert_on_put=get_settings().UPSERT_ON_PUT)
