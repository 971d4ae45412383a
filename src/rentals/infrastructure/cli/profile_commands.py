"""CLI commands for tax profiles."""

from __future__ import annotations

import click

from rentals.application.set_tax_profile import SetTaxProfileHandler
from rentals.domain.exceptions import DomainException
from rentals.domain.model.tax_profile import UserRole
from rentals.infrastructure import bootstrap
from rentals.infrastructure.config import Settings


@click.command("set")
@click.option("--user", "user_id", required=True, help="User ID.")
@click.option(
    "--role",
    type=click.Choice([r.value for r in UserRole]),
    default=UserRole.SUPER_ADMIN.value,
    show_default=True,
    help="Role of the user.",
)
@click.option("--tax-enabled/--tax-disabled", default=None, help="Explicit tax switch.")
@click.option("--rate", default=None, help="Tax rate in percent.")
@click.option("--inclusive/--exclusive", default=False, help="Prices already include tax.")
@click.option("--tax-id", default=None, help="Tax registration number (GSTIN).")
@click.pass_obj
def profile_set(
    config: Settings,
    user_id: str,
    role: str,
    tax_enabled: bool | None,
    rate: str | None,
    inclusive: bool,
    tax_id: str | None,
) -> None:
    """Create or replace a user's tax settings."""
    handler = SetTaxProfileHandler(profile_repo=bootstrap.profile_repository(config))

    try:
        profile = handler.handle(user_id, role, tax_enabled, rate, inclusive, tax_id)
    except DomainException as exc:
        raise click.ClickException(str(exc))

    click.echo(f"Profile for {profile.user_id} saved (role={profile.role.value}).")


@click.command("show")
@click.option("--user", "user_id", required=True, help="User ID.")
@click.pass_obj
def profile_show(config: Settings, user_id: str) -> None:
    """Show a user's tax settings and the profile they bill under."""
    repo = bootstrap.profile_repository(config)
    profile = repo.get_by_user_id(user_id)
    if profile is None:
        raise click.ClickException(f"No profile for user {user_id}")

    billing = bootstrap.tax_profile_resolver(config).resolve(user_id)
    click.echo(f"User:        {profile.user_id} ({profile.role.value})")
    click.echo(f"Tax enabled: {profile.tax_enabled}")
    click.echo(f"Tax rate:    {profile.tax_rate}")
    click.echo(f"Inclusive:   {profile.tax_inclusive}")
    click.echo(f"Tax id:      {profile.tax_registration_id or '-'}")
    if billing is not None and billing.user_id != profile.user_id:
        click.echo(f"Bills under: {billing.user_id}")
