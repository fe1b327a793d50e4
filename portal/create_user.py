# portal/create_user.py
# Seed staff accounts (clerk, admin, speaker, committee) from the command line:
#   flask --app portal create-user --email clerk@example.com --role clerk

import click
from flask.cli import with_appcontext

from portal.authentication.rbac import UserRole


@click.command('create-user')
@click.option('--email', required=True)
@click.option('--first-name', default='Portal')
@click.option('--last-name', default='Staff')
@click.option('--phone', default='0700000000')
@click.option('--national-id', required=True)
@click.option('--role', type=click.Choice([role.value for role in UserRole]), default=UserRole.CLERK.value)
@click.option('--role-description', default=None, help='e.g. the chamber a clerk serves')
@click.option('--password', default=None, help='Generated when omitted')
@with_appcontext
def create_user_command(email, first_name, last_name, phone, national_id, role, role_description, password):
    from portal.routes import directory, password_service

    generated = password is None
    if generated:
        password = password_service.generate_secure_password()

    result = directory.register(
        first_name, last_name, email, phone, national_id, password,
        role=role, role_description=role_description,
    )
    if not result:
        raise click.ClickException(result.message)

    click.echo(f"User email: {result.value.email}")
    click.echo(f"Role: {result.value.role}")
    if generated:
        click.echo(f"Generated password: {password}")
    click.echo("User created successfully.")
