#!/usr/bin/env python3
"""Seed script to create the initial admin and user accounts.

Passwords come from the environment; an account seeded without one cannot
log in until a password is set through account recovery.

Run this inside the container:
    docker exec -e SEED_ADMIN_PASSWORD=... insight-core python /app/scripts/seed_initial_users.py
"""

import os

from insight_core.domain.models import UserRole
from insight_core.domain.services.users import UserError, UserService
from insight_core.infra.db import get_sync_session_factory

USERS_TO_SEED = [
    {
        "name": "Initial Admin",
        "email": os.getenv("SEED_ADMIN_EMAIL", "admin@example.com"),
        "password": os.getenv("SEED_ADMIN_PASSWORD"),
        "role": UserRole.ADMIN,
    },
    {
        "name": "Initial User",
        "email": os.getenv("SEED_USER_EMAIL", "user@example.com"),
        "password": os.getenv("SEED_USER_PASSWORD"),
        "role": UserRole.USER,
    },
]


def seed_users() -> bool:
    """Create the seed users, skipping emails that already exist.

    Returns:
        True if every user was created or already present.
    """
    session_factory = get_sync_session_factory()
    session = session_factory()
    service = UserService(session)
    all_successful = True

    try:
        for user_data in USERS_TO_SEED:
            try:
                user = service.add_user(**user_data)
            except UserError as e:
                if str(e) == "Email already exists.":
                    print(f"User with email {user_data['email']} already exists. Skipping.")
                else:
                    print(f"ERROR: Failed to add user {user_data['email']}: {e}")
                    all_successful = False
                continue

            session.commit()
            print(f"Created {user.role} '{user.name}' (ID: {user.id}) with email {user.email}")
            if not user_data["password"]:
                print("  No password set; use account recovery to set one.")

    except Exception as e:
        session.rollback()
        print(f"ERROR: {e}")
        raise
    finally:
        session.close()

    return all_successful


if __name__ == "__main__":
    if seed_users():
        print("\nSeed users created successfully!")
    else:
        print("\nUser seeding completed with errors. Check the output above.")
        raise SystemExit(1)
