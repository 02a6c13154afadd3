import pytest
from sqlalchemy import func, select

from addressbook import crud, models
from addressbook.errors import DuplicateRecordError, MissingReferenceError
from addressbook.schemas import (
    ContactCreate,
    ContactLastName,
    ContactUpdate,
    PhoneCreate,
)
from addressbook.services import AddressBookService, utcnow


def add_contact(service, first_name, last_name):
    return service.create_contact(
        ContactCreate(first_name=first_name, last_name=last_name)
    )


def test_create_contact_assigns_id_and_creation_time(service):
    before = utcnow()
    contact = add_contact(service, "Ana", "Gomez")
    assert contact.id is not None
    assert before <= contact.created_at <= utcnow()
    assert contact.updated_at is None
    assert contact.phones == []


def test_search_union_is_keyed_by_id(service, db_session):
    jo = add_contact(service, "Jo", "Jo")
    add_contact(service, "Maria", "Lopez")

    # the same row comes back from all three queries
    assert len(crud.search_contacts_starting_with(db_session, "Jo")) == 1
    assert len(crud.search_contacts_containing(db_session, "Jo")) == 1
    assert len(crud.search_contacts_ending_with(db_session, "Jo")) == 1

    found = service.search_contacts("Jo")
    assert [c.id for c in found] == [jo.id]


def test_search_queries_are_ordered_by_first_name(service, db_session):
    add_contact(service, "Zoe", "Lara")
    add_contact(service, "Alba", "Lara")
    add_contact(service, "Mia", "Lara")

    found = crud.search_contacts_starting_with(db_session, "La")
    assert [c.first_name for c in found] == ["Alba", "Mia", "Zoe"]


def test_search_matches_first_or_last_name(service):
    add_contact(service, "Sara", "Vidal")
    add_contact(service, "Vidal", "Ortiz")
    add_contact(service, "Tomas", "Ruiz")

    assert {c.first_name for c in service.search_contacts("Vidal")} == {"Sara", "Vidal"}


def test_sorted_listing_rejects_unknown_direction(service):
    with pytest.raises(ValueError):
        service.list_contacts_sorted("firstName", "sideways")


def test_contacts_carry_their_phones(service):
    ana = add_contact(service, "Ana", "Gomez")
    service.create_phone(PhoneCreate(contact_id=ana.id, number="111"))
    service.create_phone(PhoneCreate(contact_id=ana.id, number="222"))

    contact = service.get_contact(ana.id)
    assert [p.number for p in contact.phones] == ["111", "222"]
    assert all(p.contact_id == ana.id for p in contact.phones)


def test_phone_owner_lookup(service):
    ana = add_contact(service, "Ana", "Gomez")
    phone = service.create_phone(PhoneCreate(contact_id=ana.id, number="111"))

    owner = service.get_phone_owner(phone.id)
    assert owner.id == ana.id
    assert service.get_phone_owner(12345) is None


def test_constraint_errors_roll_back_the_transaction(service, db_session):
    ana = add_contact(service, "Ana", "Gomez")
    service.create_phone(PhoneCreate(contact_id=ana.id, number="111"))

    with pytest.raises(DuplicateRecordError):
        service.create_phone(PhoneCreate(contact_id=ana.id, number="111"))
    with pytest.raises(MissingReferenceError):
        service.create_phone(PhoneCreate(contact_id=ana.id + 100, number="111"))

    # session is still usable and only the first phone was stored
    assert db_session.scalar(select(func.count()).select_from(models.Phone)) == 1


def test_single_field_update_leaves_other_columns(service):
    ana = add_contact(service, "Ana", "Gomez")
    updated = service.update_contact_last_name(ana.id, ContactLastName(last_name="Rojas"))
    assert updated.first_name == "Ana"
    assert updated.last_name == "Rojas"
    assert updated.created_at == ana.created_at
    assert updated.updated_at is not None


def test_full_update_of_missing_id_depends_on_upsert_flag(db_session):
    data = ContactUpdate(first_name="Nuevo", last_name="Registro")

    strict = AddressBookService(db_session, upsert_on_put=False)
    assert strict.update_contact(5, data) is None
    assert strict.get_contact(5) is None

    upserting = AddressBookService(db_session, upsert_on_put=True)
    created = upserting.update_contact(5, data)
    assert created.id == 5
    assert created.created_at == created.updated_at


def test_delete_contact_returns_last_known_state(service, db_session):
    ana = add_contact(service, "Ana", "Gomez")
    service.create_phone(PhoneCreate(contact_id=ana.id, number="111"))

    deleted = service.delete_contact(ana.id)
    assert deleted.id == ana.id
    assert [p.number for p in deleted.phones] == ["111"]
    assert service.get_contact(ana.id) is None
    assert crud.get_phones_by_contact(db_session, ana.id) == []
    assert service.delete_contact(ana.id) is None
