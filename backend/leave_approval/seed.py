"""Seed the workflow catalogue with the standard civil-service definitions.

Run with:  python -m leave_approval.seed
"""

from __future__ import annotations

import asyncio
import sys

import httpx

BASE_URL = "http://localhost:8000"

HEADERS = {
    "Content-Type": "application/json",
    "X-User-Id": "seed-script",
    "X-Staff-Id": "SYSTEM",
    "X-Role": "SYSTEM_ADMIN",
    "X-Email": "hr-systems@example.gov.gh",
}


def _flags(**values: bool) -> dict:  # type: ignore[type-arg]
    return {
        "kind": "all",
        "conditions": [{"kind": "flag", "flag": flag, "value": value} for flag, value in values.items()],
    }


def _step(order: int, role: str, description: str, *, can_delegate: bool = True) -> dict:  # type: ignore[type-arg]
    return {
        "step_order": order,
        "approver_role": role,
        "is_required": True,
        "can_skip": False,
        "can_delegate": can_delegate,
        "description": description,
    }


WORKFLOWS = [
    {
        "name": "Standard Staff Leave",
        "description": "Standard leave workflow for regular employees in directorate units",
        "is_active": True,
        "is_default": True,
        "conditions": _flags(
            is_director=False,
            is_unit_head=False,
            is_head_of_department=False,
            is_chief_director=False,
            is_hrmd=False,
            is_independent_unit=False,
        ),
        "steps": [
            _step(1, "SUPERVISOR", "Immediate supervisor approval"),
            _step(2, "UNIT_HEAD", "Unit head approval"),
            _step(3, "HEAD_OF_DEPARTMENT", "Head of Department (Director) approval"),
            _step(4, "HR_OFFICER", "HR Officer validation (mandatory)", can_delegate=False),
            _step(5, "CHIEF_DIRECTOR", "Chief Director final approval", can_delegate=False),
        ],
    },
    {
        "name": "Director Leave",
        "description": "Leave workflow for Directors (non-Chief Director)",
        "is_active": True,
        "is_default": True,
        "conditions": _flags(is_director=True, is_chief_director=False, is_hrmd=False),
        "steps": [
            _step(1, "HR_OFFICER", "HR Officer validation", can_delegate=False),
            _step(2, "CHIEF_DIRECTOR", "Chief Director final approval", can_delegate=False),
        ],
    },
    {
        "name": "Unit Head Leave",
        "description": "Leave workflow for Unit Heads in directorate units",
        "is_active": True,
        "is_default": True,
        "conditions": _flags(
            is_unit_head=True,
            is_head_of_department=False,
            is_director=False,
            is_hrmd=False,
            is_independent_unit=False,
        ),
        "steps": [
            _step(1, "HEAD_OF_DEPARTMENT", "Director/HoD approval"),
            _step(2, "HR_OFFICER", "HR Officer validation", can_delegate=False),
            _step(3, "CHIEF_DIRECTOR", "Chief Director final approval", can_delegate=False),
        ],
    },
]


async def seed_workflows(client: httpx.AsyncClient) -> None:
    """Create each workflow definition unless it already exists."""
    print("\n--- Seeding workflow definitions ---")
    for workflow in WORKFLOWS:
        resp = await client.post(f"{BASE_URL}/workflows", json=workflow, headers=HEADERS)
        if resp.status_code == 201:
            data = resp.json()
            print(f"  [OK] {data['name']} v{data['version']} ({len(data['steps'])} steps)")
        elif resp.status_code == 409:
            print(f"  [SKIP] {workflow['name']} already exists")
        else:
            print(f"  [ERROR] {workflow['name']}: {resp.status_code} {resp.text}")


async def main() -> None:
    print("=" * 60)
    print("  Leave Approval Engine: Workflow Catalogue Seed")
    print("=" * 60)

    async with httpx.AsyncClient(timeout=30.0) as client:
        try:
            resp = await client.get(f"{BASE_URL}/health")
            if resp.status_code != 200:
                print(f"API health check failed: {resp.status_code}")
                sys.exit(1)
            print("\n[OK] API is healthy")
        except httpx.ConnectError:
            print("ERROR: Cannot connect to API at", BASE_URL)
            print("Make sure the API is running")
            sys.exit(1)

        await seed_workflows(client)

    print("\n" + "=" * 60)
    print("  Seeding complete!")
    print("=" * 60)


if __name__ == "__main__":
    asyncio.run(main())
