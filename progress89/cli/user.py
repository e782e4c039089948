"""CLI commands for managing user accounts."""

from __future__ import annotations

import secrets

import pydantic as p
from sqlalchemy.orm import Session

import progress89.lib.cli as click
from progress89.core import di
from progress89.model import UserRole, UserStatus
from progress89.storage import user as user_storage


@click.group("user")
def user():
    """Manage user accounts."""


@user.command("create")
@click.argument("email")
@click.argument("name")
@click.option("--role", "-r", type=click.EnumType(UserRole), default=UserRole.Student, help="User role")
@click.option("--password", "-p", help="Password (if not provided, a random one is generated)")
@di.inject
def user_create(
    email: str,
    name: str,
    role: UserRole,
    password: str | None,
    session: Session = di.Provide["storage.persistent.session"],
) -> None:
    """Create a new user.

    EMAIL is the user's email address (used for login).
    NAME is the user's display name.
    """
    generated_password = None
    if not password:
        generated_password = secrets.token_urlsafe(12)
        password = generated_password

    with session.begin():
        if user_storage.get(email=email, session=session) is not None:
            raise click.ClickException(f"User with email '{email}' already exists")
        new_user = user_storage.create(
            email=email, name=name, password=p.Secret(password), role=role, session=session
        )

    click.echo(f"Created user: {new_user.name}")
    click.echo(f"  ID: {new_user.user_id}")
    click.echo(f"  Email: {new_user.email}")
    click.echo(f"  Role: {new_user.role.value}")
    if generated_password:
        click.echo(f"  Generated password: {generated_password}")


@user.command("list")
@click.option("--role", "-r", type=click.EnumType(UserRole), default=None)
@click.option("--inactive", is_flag=True, default=False, help="List deactivated users instead")
@di.inject
def user_list(
    role: UserRole | None,
    inactive: bool,
    session: Session = di.Provide["storage.persistent.session"],
) -> None:
    status = UserStatus.Inactive if inactive else UserStatus.Active
    with session.begin():
        found = user_storage.find(role=role, status=status, session=session)

    for u in found:
        click.echo(f"{u.user_id}  {u.role.value:<8}  {u.email}  {u.name}")
    click.echo(f"\n{len(found)} user(s)")


@user.command("set-password")
@click.argument("email")
@click.password_option()
@di.inject
def user_set_password(
    email: str,
    password: str,
    session: Session = di.Provide["storage.persistent.session"],
) -> None:
    """Set the password of the user with EMAIL."""
    with session.begin():
        found = user_storage.get(email=email, session=session)
        if found is None:
            raise click.ClickException(f"User '{email}' not found")
        user_storage.update(found.user_id, password=p.Secret(password), session=session)
    click.echo(f"Password updated for {email}")
