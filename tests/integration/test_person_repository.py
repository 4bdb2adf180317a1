from datetime import datetime

import pytest
from sqlalchemy import func, select

from bizmanager.core.exceptions import ConflictError, NotFoundError, ValidationError
from bizmanager.models import (
    DynamicFieldInput,
    FieldType,
    InteractionCreate,
    InteractionType,
    PersonCreate,
    PersonStatus,
    PersonUpdate,
)
from bizmanager.services.interactions import InteractionService
from bizmanager.services.people import PersonRepository
from bizmanager.storage.tables import DynamicFieldRecord, InteractionRecord


def _person(name, status=None, **extra):
    return PersonCreate(name=name, status=status, **extra)


@pytest.mark.asyncio
async def test_create_then_get_round_trips(session):
    people = PersonRepository(session)

    created = await people.create_person(
        PersonCreate(
            name="  Jane Doe ",
            email="jane@acme.example",
            phone="+1 555 0100",
            company="Acme",
            status="lead",
            dynamic_fields=[
                DynamicFieldInput(field_name="budget", field_type="NUMBER", value="1500.5"),
                DynamicFieldInput(field_name="website", field_type="URL", string_value="https://acme.example"),
                DynamicFieldInput(field_name="signed", field_type="BOOLEAN", value="true"),
            ],
        ),
        created_by_id=None,
    )
    fetched = await people.get_person(created.id)

    assert fetched.id == created.id
    assert fetched.name == "Jane Doe"
    assert fetched.status is PersonStatus.LEAD
    assert fetched.company == "Acme"
    assert fetched.created_at == fetched.updated_at
    assert fetched.last_interaction is None

    fields = {field.field_name: field for field in fetched.dynamic_fields}
    assert fields["budget"].number_value == 1500.5
    assert fields["budget"].string_value is None
    assert fields["website"].value == "https://acme.example"
    assert fields["signed"].boolean_value is True
    assert fields["signed"].field_type is FieldType.BOOLEAN


@pytest.mark.asyncio
async def test_status_defaults_to_active(session):
    person = await PersonRepository(session).create_person(_person("Sam"))

    assert person.status is PersonStatus.ACTIVE


@pytest.mark.asyncio
async def test_validation_reports_every_violation(session):
    people = PersonRepository(session)

    with pytest.raises(ValidationError) as excinfo:
        await people.create_person(
            PersonCreate(
                name="",
                email="not-an-email",
                status="BOSS",
                dynamic_fields=[
                    DynamicFieldInput(field_name="age", field_type="NUMBER", value="forty"),
                    DynamicFieldInput(field_name="contact", field_type="EMAIL", value="nope"),
                    DynamicFieldInput(field_name="odd", field_type="COLOR", value="red"),
                ],
            )
        )

    errors = excinfo.value.errors
    assert "name is required" in errors
    assert "email has an invalid format" in errors
    assert any(error.startswith("status must be one of") for error in errors)
    assert "dynamicFields[0] (age): NUMBER value must be numeric" in errors
    assert "dynamicFields[1] (contact): EMAIL value must be a valid email address" in errors
    assert any(error.startswith("dynamicFields[2] (odd): fieldType must be one of") for error in errors)


@pytest.mark.asyncio
async def test_get_missing_person_raises_not_found(session):
    with pytest.raises(NotFoundError):
        await PersonRepository(session).get_person("missing")


@pytest.mark.asyncio
async def test_list_filters_by_category_and_status(session):
    people = PersonRepository(session)
    for status in PersonStatus:
        await people.create_person(_person(f"{status.value.title()} Person", status.value))

    business = await people.list_people("BUSINESS")
    personal = await people.list_people("personal")
    leads = await people.list_people("LEAD")
    everyone = await people.list_people()

    assert {person.status.value for person in business.items} == {
        "ACTIVE",
        "INACTIVE",
        "LEAD",
        "CUSTOMER",
        "VENDOR",
        "PARTNER",
    }
    assert {person.status.value for person in personal.items} == {"FRIEND", "FAMILY", "ACQUAINTANCE"}
    assert [person.status for person in leads.items] == [PersonStatus.LEAD]
    assert everyone.total == len(PersonStatus)


@pytest.mark.asyncio
async def test_list_rejects_unknown_filter(session):
    with pytest.raises(ValidationError):
        await PersonRepository(session).list_people("VIP")


@pytest.mark.asyncio
async def test_list_search_sort_and_paginate(session):
    people = PersonRepository(session)
    for name in ("Charlie", "alice", "Bob", "Alicia"):
        await people.create_person(_person(name, company="Initech" if name.lower().startswith("ali") else None))

    matches = await people.list_people(search="ali", sort="name")
    assert {person.name for person in matches.items} == {"alice", "Alicia"}
    assert matches.total == 2

    page = await people.list_people(sort="-name", page=2, limit=2)
    assert page.total == 4
    assert len(page.items) == 2


@pytest.mark.asyncio
async def test_search_treats_wildcards_literally(session):
    people = PersonRepository(session)
    await people.create_person(_person("Plain"))

    result = await people.list_people(search="%")

    assert result.total == 0


@pytest.mark.asyncio
async def test_partial_update_touches_only_given_keys(session):
    people = PersonRepository(session)
    person = await people.create_person(_person("Jane", "LEAD", company="Acme", notes="met at expo"))
    created_at, first_updated_at = person.created_at, person.updated_at

    updated = await people.update_person(person.id, PersonUpdate(status="CUSTOMER"))

    assert updated.status is PersonStatus.CUSTOMER
    assert updated.company == "Acme"
    assert updated.notes == "met at expo"
    assert updated.created_at == created_at
    assert updated.updated_at > first_updated_at


@pytest.mark.asyncio
async def test_update_syncs_dynamic_fields_by_name(session):
    people = PersonRepository(session)
    person = await people.create_person(
        PersonCreate(
            name="Jane",
            dynamic_fields=[
                DynamicFieldInput(field_name="tier", field_type="STRING", value="gold"),
                DynamicFieldInput(field_name="score", field_type="NUMBER", value=3),
            ],
        )
    )
    tier_id = next(field.id for field in person.dynamic_fields if field.field_name == "tier")

    updated = await people.update_person(
        person.id,
        PersonUpdate(
            dynamic_fields=[
                DynamicFieldInput(field_name="tier", field_type="NUMBER", value=2),
                DynamicFieldInput(field_name="since", field_type="DATE", value="2024-05-01T09:00:00"),
            ]
        ),
    )

    fields = {field.field_name: field for field in updated.dynamic_fields}
    assert set(fields) == {"tier", "since"}
    assert fields["tier"].id == tier_id
    assert fields["tier"].number_value == 2
    assert fields["tier"].string_value is None
    assert fields["since"].date_value == datetime(2024, 5, 1, 9, 0)


@pytest.mark.asyncio
async def test_null_dynamic_fields_keep_existing_and_empty_list_clears(session):
    people = PersonRepository(session)
    person = await people.create_person(
        PersonCreate(
            name="Jane",
            dynamic_fields=[DynamicFieldInput(field_name="site", field_type="URL", value="https://acme.example")],
        )
    )

    kept = await people.update_person(person.id, PersonUpdate(status="CUSTOMER", dynamic_fields=None))
    assert kept.status is PersonStatus.CUSTOMER
    assert [field.field_name for field in kept.dynamic_fields] == ["site"]

    cleared = await people.update_person(person.id, PersonUpdate(dynamic_fields=[]))
    assert cleared.dynamic_fields == []


@pytest.mark.asyncio
async def test_invalid_update_leaves_record_unchanged(session):
    people = PersonRepository(session)
    person = await people.create_person(_person("Jane", "LEAD"))

    with pytest.raises(ValidationError):
        await people.update_person(person.id, PersonUpdate(name="", phone="call me"))

    assert (await people.get_person(person.id)).name == "Jane"


@pytest.mark.asyncio
async def test_delete_cascades_fields_and_interactions(session):
    people = PersonRepository(session)
    person = await people.create_person(
        PersonCreate(
            name="Jane",
            dynamic_fields=[DynamicFieldInput(field_name="tier", field_type="STRING", value="gold")],
        )
    )
    await InteractionService(session).create(InteractionCreate(person_id=person.id, type=InteractionType.CALL))

    await people.delete_person(person.id)

    with pytest.raises(NotFoundError):
        await people.get_person(person.id)
    remaining_fields = await session.scalar(
        select(func.count()).select_from(DynamicFieldRecord).where(DynamicFieldRecord.person_id == person.id)
    )
    remaining_interactions = await session.scalar(
        select(func.count()).select_from(InteractionRecord).where(InteractionRecord.person_id == person.id)
    )
    assert remaining_fields == 0
    assert remaining_interactions == 0


@pytest.mark.asyncio
async def test_add_and_remove_dynamic_field(session):
    people = PersonRepository(session)
    person = await people.create_person(_person("Jane"))

    field = await people.add_dynamic_field(
        person.id, DynamicFieldInput(field_name="linkedin", field_type="URL", value="https://linkedin.com/in/jane")
    )
    assert field.person_id == person.id

    with pytest.raises(ValidationError):
        await people.add_dynamic_field(
            person.id, DynamicFieldInput(field_name="linkedin", field_type="URL", value="https://example.com")
        )

    await people.remove_dynamic_field(field.id)
    assert (await people.get_person(person.id)).dynamic_fields == []

    with pytest.raises(NotFoundError):
        await people.remove_dynamic_field(field.id)


@pytest.mark.asyncio
async def test_last_interaction_tracks_latest_date(session):
    people = PersonRepository(session)
    interactions = InteractionService(session)
    person = await people.create_person(_person("Jane"))

    await interactions.create(
        InteractionCreate(person_id=person.id, type=InteractionType.CALL, date=datetime(2025, 1, 5, 12, 0))
    )
    await interactions.create(
        InteractionCreate(person_id=person.id, type=InteractionType.MEETING, date=datetime(2025, 2, 1, 9, 30))
    )

    assert (await people.get_person(person.id)).last_interaction == datetime(2025, 2, 1, 9, 30)


@pytest.mark.asyncio
async def test_commit_conflicts_surface_as_conflict_error(session, monkeypatch):
    from sqlalchemy.exc import IntegrityError

    people = PersonRepository(session)

    async def failing_commit():
        raise IntegrityError("INSERT", {}, Exception("constraint failed"))

    monkeypatch.setattr(session, "commit", failing_commit)

    with pytest.raises(ConflictError):
        await people.create_person(_person("Jane"))
