"""Seed script for development data.

Run with:  python -m approval_flow.seed

Creates a small reporting chain so requests can be submitted and forwarded:
alice -> bob -> carol -> dana, plus erin, who reports to nobody.
"""

from __future__ import annotations

import asyncio
import sys

from sqlalchemy.exc import SQLAlchemyError

from approval_flow.db import dispose_engine, get_session_factory
from approval_flow.models.employee import Employee

EMPLOYEES = [
    {
        "email": "alice@example.com",
        "full_name": "Alice Johnson",
        "reports_to": "bob@example.com",
        "role": "Engineer",
        "department": "Engineering",
    },
    {
        "email": "bob@example.com",
        "full_name": "Bob Smith",
        "reports_to": "carol@example.com",
        "role": "Engineering Manager",
        "department": "Engineering",
    },
    {
        "email": "carol@example.com",
        "full_name": "Carol Williams",
        "reports_to": "dana@example.com",
        "role": "IT Director",
        "department": "IT",
    },
    {
        "email": "dana@example.com",
        "full_name": "Dana Lee",
        "reports_to": None,
        "role": "CTO",
        "department": "Executive",
    },
    {
        "email": "erin@example.com",
        "full_name": "Erin Brown",
        "reports_to": None,
        "role": "Contractor",
        "department": "Operations",
    },
]


async def seed() -> int:
    """Upsert the development directory. Returns the number of rows written."""
    factory = get_session_factory()
    async with factory() as session:
        for data in EMPLOYEES:
            await session.merge(Employee(**data))
        await session.commit()
    return len(EMPLOYEES)


async def _main() -> int:
    try:
        count = await seed()
    except SQLAlchemyError as exc:
        print(f"Seeding failed: {exc}", file=sys.stderr)
        return 1
    finally:
        await dispose_engine()

    print(f"Seeded {count} employees")
    for data in EMPLOYEES:
        print(f"  {data['email']:<22} reports to {data['reports_to'] or '-'}")
    return 0


if __name__ == "__main__":
    sys.exit(asyncio.run(_main()))
