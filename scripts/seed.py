#!/usr/bin/env python
"""
Seed the database with an admin account, sample people, tags and interactions.

Usage:
    python -m scripts.seed --admin-email admin@example.com --admin-password 'S3cret-pass'
"""

from __future__ import annotations

import argparse
import asyncio
import logging
from datetime import timedelta

from bizmanager.core.database import database_manager
from bizmanager.core.exceptions import ConflictError
from bizmanager.core.security import utcnow
from bizmanager.models import DynamicFieldInput, InteractionCreate, InteractionType, PersonCreate, TagCreate, UserRole
from bizmanager.services.auth import AuthService
from bizmanager.services.interactions import InteractionService
from bizmanager.services.people import PersonRepository
from bizmanager.services.tags import TagService

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger("bizmanager.seed")

PEOPLE = [
    {
        "name": "Jane Doe",
        "email": "jane.doe@acme.example",
        "phone": "+1 (555) 010-2000",
        "role": "Head of Procurement",
        "company": "Acme Corp",
        "status": "LEAD",
        "dynamic_fields": [
            {"field_name": "website", "field_type": "URL", "value": "https://acme.example"},
            {"field_name": "annual_budget", "field_type": "NUMBER", "value": 250000},
        ],
    },
    {
        "name": "Carlos Mendes",
        "email": "carlos@northwind.example",
        "role": "CTO",
        "company": "Northwind",
        "status": "CUSTOMER",
        "dynamic_fields": [
            {"field_name": "renewal_date", "field_type": "DATE", "value": "2027-01-31T00:00:00"},
            {"field_name": "signed_nda", "field_type": "BOOLEAN", "value": True},
        ],
    },
    {
        "name": "Priya Raman",
        "company": "Globex",
        "status": "VENDOR",
        "notes": "Supplies office hardware.",
    },
    {
        "name": "Sam Taylor",
        "phone": "555-0199",
        "status": "FRIEND",
        "dynamic_fields": [{"field_name": "birthday", "field_type": "DATE", "value": "1990-06-15T00:00:00"}],
    },
    {
        "name": "Alex Kim",
        "status": "FAMILY",
    },
]

TAGS = [
    {"name": "follow-up", "color": "#f59e0b"},
    {"name": "contract", "color": "#2563eb"},
    {"name": "personal", "color": "#10b981"},
]


async def seed(admin_email: str, admin_password: str) -> None:
    await database_manager.create_all()

    try:
        async with database_manager.session() as session:
            auth = AuthService(session)
            try:
                result = await auth.register(admin_email, admin_password, name="Administrator", role=UserRole.ADMIN)
                admin_id = result.user.id
                logger.info("Created admin account %s", admin_email)
            except ConflictError:
                existing = await auth.credentials.get_user_by_email(admin_email)
                admin_id = existing.id if existing else None
                logger.info("Admin account %s already exists", admin_email)

            logger.info("Seeding tags...")
            tags = TagService(session)
            tag_ids = {}
            for payload in TAGS:
                try:
                    tag = await tags.create(TagCreate(**payload))
                except ConflictError:
                    tag = next(tag for tag in await tags.list(payload["name"]) if tag.name == payload["name"])
                tag_ids[tag.name] = tag.id

            logger.info("Seeding people...")
            people = PersonRepository(session)
            interactions = InteractionService(session)
            for index, payload in enumerate(PEOPLE):
                fields = [DynamicFieldInput(**field) for field in payload.get("dynamic_fields", [])]
                data = PersonCreate(**{**payload, "dynamic_fields": fields})
                person = await people.create_person(data, created_by_id=admin_id)

                await interactions.create(
                    InteractionCreate(
                        person_id=person.id,
                        type=InteractionType.MEETING if person.status.value in {"LEAD", "CUSTOMER"} else InteractionType.NOTE,
                        notes=f"Initial contact with {person.name}",
                        date=utcnow() - timedelta(days=index * 3),
                        tag_ids=[tag_ids["follow-up"]],
                    ),
                    created_by_id=admin_id,
                )
    finally:
        await database_manager.close()

    logger.info("Seeding completed at %s", utcnow().isoformat())


def main() -> None:
    parser = argparse.ArgumentParser(description="Seed the business manager database")
    parser.add_argument("--admin-email", default="admin@bizmanager.local")
    parser.add_argument("--admin-password", required=True)
    args = parser.parse_args()
    asyncio.run(seed(args.admin_email, args.admin_password))


if __name__ == "__main__":
    main()
