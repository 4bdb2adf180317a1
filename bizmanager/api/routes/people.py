"""People directory endpoints."""

from __future__ import annotations

from typing import List, Optional

from fastapi import APIRouter, Depends, Query, Response, status

from bizmanager.api.dependencies import get_current_user, get_person_repository
from bizmanager.core.security import TokenClaims
from bizmanager.models import DynamicField, DynamicFieldInput, Person, PersonCreate, PersonUpdate
from bizmanager.services.people import PersonRepository

router = APIRouter(prefix="/people", tags=["people"], dependencies=[Depends(get_current_user)])


@router.get("", response_model=List[Person])
async def list_people(
    response: Response,
    status_filter: Optional[str] = Query(None, alias="status"),
    search: Optional[str] = None,
    sort: str = "created_at",
    page: int = 1,
    limit: Optional[int] = None,
    people: PersonRepository = Depends(get_person_repository),
) -> List[Person]:
    """List people by status, by BUSINESS/PERSONAL category, or all of them."""

    result = await people.list_people(status_filter, search=search, sort=sort, page=page, limit=limit)
    response.headers["X-Total-Count"] = str(result.total)
    return [Person.model_validate(person) for person in result.items]


@router.post("", response_model=Person, status_code=status.HTTP_201_CREATED)
async def create_person(
    payload: PersonCreate,
    current_user: TokenClaims = Depends(get_current_user),
    people: PersonRepository = Depends(get_person_repository),
) -> Person:
    person = await people.create_person(payload, created_by_id=current_user.user_id)
    return Person.model_validate(person)


@router.delete("/fields/{field_id}", status_code=status.HTTP_204_NO_CONTENT)
async def remove_dynamic_field(field_id: str, people: PersonRepository = Depends(get_person_repository)) -> None:
    await people.remove_dynamic_field(field_id)


@router.get("/{person_id}", response_model=Person)
async def get_person(person_id: str, people: PersonRepository = Depends(get_person_repository)) -> Person:
    return Person.model_validate(await people.get_person(person_id))


@router.patch("/{person_id}", response_model=Person)
async def update_person(
    person_id: str,
    payload: PersonUpdate,
    people: PersonRepository = Depends(get_person_repository),
) -> Person:
    return Person.model_validate(await people.update_person(person_id, payload))


@router.delete("/{person_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_person(person_id: str, people: PersonRepository = Depends(get_person_repository)) -> None:
    """Delete a person together with their dynamic fields and interactions."""

    await people.delete_person(person_id)


@router.post("/{person_id}/fields", response_model=DynamicField, status_code=status.HTTP_201_CREATED)
async def add_dynamic_field(
    person_id: str,
    payload: DynamicFieldInput,
    people: PersonRepository = Depends(get_person_repository),
) -> DynamicField:
    return DynamicField.model_validate(await people.add_dynamic_field(person_id, payload))
