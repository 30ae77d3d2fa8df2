"""
Provision a user (e.g. the first admin) in the backend users table. Run from project root:
  python -m scripts.create_user USERNAME PASSWORD [role] [--email EMAIL] [--inactive]
Example:
  python -m scripts.create_user admin your-secure-password admin --email admin@hospital.example

Uses SUPABASE_SERVICE_ROLE_KEY when set so row-level security does not block the insert.
"""
import argparse
import asyncio
import sys

from config.app_config import get_config
from services.auth_service.credentials import hash_password
from services.auth_service.models import utc_now_iso
from services.auth_service.user_repository import UserRepository


async def create_user(repository: UserRepository, username: str, password: str,
                      role: str, email: str = None, active: bool = True) -> int:
    existing = await repository.find_by_username(username, columns="id")
    if existing.ok:
        print(f"User '{username}' already exists.", file=sys.stderr)
        return 1
    if existing.error.is_table_missing:
        print("The users table does not exist. Create it in the Supabase SQL editor first.", file=sys.stderr)
        return 1

    inserted = await repository.insert({
        "username": username,
        "password": hash_password(password),
        "email": email,
        "role": role,
        "is_active": active,
        "created_at": utc_now_iso(),
    })
    if inserted.error:
        print(f"Failed to create user: {inserted.error.message} ({inserted.error.code})", file=sys.stderr)
        return 1

    print(f"Created user '{username}' with role '{role}'.")
    return 0


def main() -> int:
    parser = argparse.ArgumentParser(description="Create a console user (no registration UI).")
    parser.add_argument("username", help="Username (1-255 chars)")
    parser.add_argument("password", help="Password (at least 6 chars)")
    parser.add_argument("role", nargs="?", default="user", choices=["user", "admin"])
    parser.add_argument("--email", default=None, help="Contact email")
    parser.add_argument("--inactive", action="store_true", help="Create the account disabled")
    args = parser.parse_args()

    config = get_config()
    username = args.username.strip()
    if not username or len(username) > 255:
        print("Invalid username length.", file=sys.stderr)
        return 1
    if len(args.password) < config.auth.password_min_length:
        print(f"Password must be at least {config.auth.password_min_length} characters.", file=sys.stderr)
        return 1
    if not config.backend.supabase_url or not config.backend.admin_key:
        print("Missing SUPABASE_URL or SUPABASE_SERVICE_ROLE_KEY / SUPABASE_ANON_KEY.", file=sys.stderr)
        return 1

    repository = UserRepository(config.backend, api_key=config.backend.admin_key)
    return asyncio.run(create_user(
        repository, username, args.password, args.role, email=args.email, active=not args.inactive
    ))


if __name__ == "__main__":
    sys.exit(main())
