"""Phone routes of the address book API."""

from fastapi import APIRouter, Depends, Response, status

from . import schemas
from .services import AddressBookService, get_service

router = APIRouter(tags=["phones"])

PHONE_NOT_FOUND = "phone does not exist"
PHONE_REMOVED = "phone removed successfully"


@router.post(
    "/phone",
    response_model=schemas.Envelope[schemas.PhoneOut],
    status_code=status.HTTP_201_CREATED,
)
def create_phone(
    phone_in: schemas.PhoneCreate,
    service: AddressBookService = Depends(get_service),
):
    """
    Register a phone number for an existing contact.

    Args:
        phone_in (PhoneCreate): Owning contact id and number.
        service (AddressBookService): Address book service.

    Returns:
        Envelope[PhoneOut]: Created phone with its generated id.
    """
    return schemas.Envelope(data=service.create_phone(phone_in))


@router.put("/phone/{phone_id}", response_model=schemas.Envelope[schemas.PhoneOut])
def update_phone(
    phone_id: int,
    phone_in: schemas.PhoneUpdate,
    response: Response,
    service: AddressBookService = Depends(get_service),
):
    """Replace every field of a phone."""
    phone = service.update_phone(phone_id, phone_in)
    if phone is None:
        response.status_code = status.HTTP_404_NOT_FOUND
        return schemas.Envelope(message=PHONE_NOT_FOUND)
    return schemas.Envelope(data=phone)


@router.patch(
    "/phone/{phone_id}/number", response_model=schemas.Envelope[schemas.PhoneOut]
)
def update_number(
    phone_id: int,
    data: schemas.PhoneNumber,
    response: Response,
    service: AddressBookService = Depends(get_service),
):
    """Change only the number of a phone, leaving its owner untouched."""
    phone = service.update_phone_number(phone_id, data)
    if phone is None:
        response.status_code = status.HTTP_404_NOT_FOUND
        return schemas.Envelope(message=PHONE_NOT_FOUND)
    return schemas.Envelope(data=phone)


@router.delete("/phone/{phone_id}", response_model=schemas.Envelope[schemas.PhoneOut])
def remove_phone(
    phone_id: int,
    response: Response,
    service: AddressBookService = Depends(get_service),
):
    """
    Delete a phone.

    Returns:
        Envelope[PhoneOut]: The deleted phone, or an empty envelope with
        status 404 if it does not exist.
    """
    phone = service.delete_phone(phone_id)
    if phone is None:
        response.status_code = status.HTTP_404_NOT_FOUND
        return schemas.Envelope(message=PHONE_NOT_FOUND)
    return schemas.Envelope(message=PHONE_REMOVED, data=phone)
