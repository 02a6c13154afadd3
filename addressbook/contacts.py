"""Contact routes of the address book API.

Every route answers with an :class:`~addressbook.schemas.Envelope`;
storage errors are turned into envelopes by the handlers in
:mod:`addressbook.errors`.
"""

from typing import List

from fastapi import APIRouter, Depends, Response, status

from . import schemas
from .services import AddressBookService, get_service

router = APIRouter(tags=["contacts"])

CONTACT_NOT_FOUND = "contact does not exist"
CONTACT_REMOVED = "contact removed successfully"


@router.get("/index", response_model=schemas.Envelope[List[schemas.ContactOut]])
def index(service: AddressBookService = Depends(get_service)):
    """
    List every contact together with its phones.

    Args:
        service (AddressBookService): Address book service.

    Returns:
        Envelope[list[ContactOut]]: All contacts.
    """
    return schemas.Envelope(data=service.list_contacts())


@router.get(
    "/index/orderby/{field}/{direction}",
    response_model=schemas.Envelope[List[schemas.ContactOut]],
)
def index_order_by(
    field: str,
    direction: str,
    service: AddressBookService = Depends(get_service),
):
    """
    List every contact ordered by a column.

    Args:
        field (str): ``id``, ``firstName``, ``lastName``, ``createdAt`` or
            ``updatedAt``.
        direction (str): ``ASC`` or ``DESC``.
        service (AddressBookService): Address book service.

    Returns:
        Envelope[list[ContactOut]]: Sorted contacts.
    """
    return schemas.Envelope(data=service.list_contacts_sorted(field, direction))


@router.get(
    "/search/contact/{term}",
    response_model=schemas.Envelope[List[schemas.ContactOut]],
)
def search_contacts(term: str, service: AddressBookService = Depends(get_service)):
    """
    Search contacts by first or last name.

    A contact is returned once even when its names start with, contain
    and end with ``term`` at the same time.
    """
    return schemas.Envelope(data=service.search_contacts(term))


@router.post(
    "/contact",
    response_model=schemas.Envelope[schemas.ContactOut],
    status_code=status.HTTP_201_CREATED,
)
def create_contact(
    contact_in: schemas.ContactCreate,
    service: AddressBookService = Depends(get_service),
):
    """
    Create a new contact.

    Args:
        contact_in (ContactCreate): Contact input data.
        service (AddressBookService): Address book service.

    Returns:
        Envelope[ContactOut]: Created contact with its generated id.
    """
    return schemas.Envelope(data=service.create_contact(contact_in))


@router.put("/contact/{contact_id}", response_model=schemas.Envelope[schemas.ContactOut])
def update_contact(
    contact_id: int,
    contact_in: schemas.ContactUpdate,
    response: Response,
    service: AddressBookService = Depends(get_service),
):
    """
    Replace every field of a contact.

    Whether a missing id is inserted or answered with 404 depends on the
    ``UPSERT_ON_PUT`` setting.
    """
    contact = service.update_contact(contact_id, contact_in)
    if contact is None:
        response.status_code = status.HTTP_404_NOT_FOUND
        return schemas.Envelope(message=CONTACT_NOT_FOUND)
    return schemas.Envelope(data=contact)


@router.patch(
    "/contact/{contact_id}/name", response_model=schemas.Envelope[schemas.ContactOut]
)
def update_first_name(
    contact_id: int,
    data: schemas.ContactFirstName,
    response: Response,
    service: AddressBookService = Depends(get_service),
):
    """Change only the first name of a contact."""
    contact = service.update_contact_first_name(contact_id, data)
    if contact is None:
        response.status_code = status.HTTP_404_NOT_FOUND
        return schemas.Envelope(message=CONTACT_NOT_FOUND)
    return schemas.Envelope(data=contact)


@router.patch(
    "/contact/{contact_id}/lastname",
    response_model=schemas.Envelope[schemas.ContactOut],
)
def update_last_name(
    contact_id: int,
    data: schemas.ContactLastName,
    response: Response,
    service: AddressBookService = Depends(get_service),
):
    """Change only the last name of a contact."""
    contact = service.update_contact_last_name(contact_id, data)
    if contact is None:
        response.status_code = status.HTTP_404_NOT_FOUND
        return schemas.Envelope(message=CONTACT_NOT_FOUND)
    return schemas.Envelope(data=contact)


@router.delete(
    "/contact/{contact_id}", response_model=schemas.Envelope[schemas.ContactOut]
)
def remove_contact(
    contact_id: int,
    response: Response,
    service: AddressBookService = Depends(get_service),
):
    """
    Delete a contact and all of its phones.

    Args:
        contact_id (int): Contact identifier.
        response (Response): Outgoing response, used to set 404.
        service (AddressBookService): Address book service.

    Returns:
        Envelope[ContactOut]: The deleted contact, or an empty envelope
        with status 404 if it does not exist.
    """
    contact = service.delete_contact(contact_id)
    if contact is None:
        response.status_code = status.HTTP_404_NOT_FOUND
        return schemas.Envelope(message=CONTACT_NOT_FOUND)
    return schemas.Envelope(message=CONTACT_REMOVED, data=contact)
