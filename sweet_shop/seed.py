# ==============================================================================
# SEED DATA AND CLI COMMANDS
# ==============================================================================
# Sample catalog used by auto-seeding, the reseed endpoint and `flask seed`.
#
# COMMANDS (registered on the Flask CLI by create_app):
#   flask --app wsgi seed [--replace]
#   flask --app wsgi create-admin EMAIL USERNAME --password ...
#   flask --app wsgi set-role EMAIL ROLE
# ==============================================================================

import logging
from typing import Any, Dict, List

import click
from flask import current_app
from flask.cli import with_appcontext

from sweet_shop.errors import ConflictError, NotFoundError
from sweet_shop.models import Sweet, UserRole
from sweet_shop.services import AuthService, CatalogService

logger = logging.getLogger(__name__)


SAMPLE_SWEETS: List[Dict[str, Any]] = [
    {
        'name': 'Gulab Jamun',
        'description': 'Soft, syrupy milk-based Indian sweet balls.',
        'category': 'other',
        'price': 50,
        'quantity': 80,
        'image_url': 'https://upload.wikimedia.org/wikipedia/commons/thumb/6/6e/Gulab_jamun_%28homemade%29.jpg/800px-Gulab_jamun_%28homemade%29.jpg',
    },
    {
        'name': 'Jalebi',
        'description': 'Soft, syrupy indian sweet rolls.',
        'category': 'other',
        'price': 100,
        'quantity': 150,
        'image_url': 'https://upload.wikimedia.org/wikipedia/commons/thumb/5/5f/Jalebi_on_a_white_plate.jpg/800px-Jalebi_on_a_white_plate.jpg',
    },
    {
        'name': 'Rasgulla',
        'description': 'Soft and spongy cottage cheese balls soaked in light sugar syrup.',
        'category': 'other',
        'price': 200,
        'quantity': 100,
        'image_url': 'https://upload.wikimedia.org/wikipedia/commons/thumb/6/6b/Rasgulla_in_syrup.jpg/800px-Rasgulla_in_syrup.jpg',
    },
    {
        'name': 'Dark Chocolate Truffle',
        'description': 'Rich, velvety dark chocolate truffles made with premium cocoa.',
        'category': 'chocolate',
        'price': 60,
        'quantity': 50,
        'image_url': 'https://images.unsplash.com/photo-1549007994-cb92caebd54b?w=400',
    },
    {
        'name': 'Milk Chocolate Bar',
        'description': 'Creamy milk chocolate bar with smooth, silky texture.',
        'category': 'chocolate',
        'price': 120,
        'quantity': 100,
        'image_url': 'https://images.unsplash.com/photo-1606312619070-d48b4c652a52?w=400',
    },
    {
        'name': 'Kaju Katli',
        'description': 'A rich cashew-based Indian sweet with a smooth, melt-in-mouth texture.',
        'category': 'other',
        'price': 250,
        'quantity': 100,
        'image_url': 'https://upload.wikimedia.org/wikipedia/commons/thumb/d/d4/Kaju_katli.jpg/800px-Kaju_katli.jpg',
    },
    {
        'name': 'Laddoo',
        'description': 'A classic Indian sweet made from gram flour and ghee.',
        'category': 'other',
        'price': 200,
        'quantity': 100,
        'image_url': 'https://upload.wikimedia.org/wikipedia/commons/thumb/2/2d/Besan_Ke_Laddu.jpg/800px-Besan_Ke_Laddu.jpg',
    },
    {
        'name': 'Chocolate Chip Cookies',
        'description': 'Freshly baked cookies loaded with chocolate chips. Crispy outside, chewy inside.',
        'category': 'cookie',
        'price': 150,
        'quantity': 75,
        'image_url': 'https://images.unsplash.com/photo-1499636136210-6f4ee915583e?w=400',
    },
    {
        'name': 'Red Velvet Cake',
        'description': 'Red velvet cake with cream cheese frosting.',
        'category': 'cake',
        'price': 400,
        'quantity': 10,
        'image_url': 'https://images.unsplash.com/photo-1586788680434-30d324b2d46f?w=400',
    },
    {
        'name': 'Chocolate Fudge Cake',
        'description': 'Chocolate fudge cake with rich ganache topping.',
        'category': 'cake',
        'price': 500,
        'quantity': 8,
        'image_url': 'https://images.unsplash.com/photo-1578985545062-69928b1d9587?w=400',
    },
    {
        'name': 'Butter Croissants',
        'description': 'Flaky, buttery croissants baked to golden perfection.',
        'category': 'pastry',
        'price': 130,
        'quantity': 60,
        'image_url': 'https://images.unsplash.com/photo-1555507036-ab1f4038808a?w=400',
    },
    {
        'name': 'Chocolate Sundae',
        'description': 'Chocolate ice cream sundae with fresh berries and whipped cream.',
        'category': 'ice_cream',
        'price': 200,
        'quantity': 25,
        'image_url': 'https://images.unsplash.com/photo-1563805042-7684c019e1cb?w=400',
    },
]


def seed_catalog(catalog: CatalogService, replace: bool = False) -> List[Sweet]:
    """
    Loads SAMPLE_SWEETS into the catalog.

    Args:
        catalog: Target service
        replace: Clear the catalog first; otherwise only an empty catalog is seeded

    Returns:
        The sweets created (empty if the catalog already had data)
    """
    if replace:
        catalog.clear()
    elif catalog.count() > 0:
        logger.info("Catalog has %d sweets, seeding skipped", catalog.count())
        return []

    created = [catalog.create(dict(data)) for data in SAMPLE_SWEETS]
    logger.info("Seeded %d sweets", len(created))
    return created


def ensure_admin(auth: AuthService, email: str, username: str, password: str) -> Dict[str, Any]:
    """
    Creates an admin account, or promotes the existing account with that e-mail.

    Returns:
        Public projection of the admin user
    """
    try:
        result = auth.register(email, username, password, role=UserRole.ADMIN)
        return result.user
    except ConflictError:
        return auth.change_role(email, UserRole.ADMIN)


# ═══════════════════════════════════════════════════════════════════════════
# FLASK CLI
# ═══════════════════════════════════════════════════════════════════════════

def _container():
    return current_app.extensions['sweet_shop']


@click.command('seed')
@click.option('--replace', is_flag=True, help='Delete every sweet before seeding.')
@with_appcontext
def seed_command(replace):
    """Load the sample catalog."""
    created = seed_catalog(_container().catalog_service, replace=replace)
    if not created:
        click.echo('Catalog is not empty; use --replace to reseed.')
        return
    for sweet in created:
        status = 'OUT OF STOCK' if not sweet.is_in_stock() else f'{sweet.quantity} in stock'
        click.echo(f'{sweet.name}: {sweet.price} - {status}')
    click.echo(f'Added {len(created)} sweets.')


@click.command('create-admin')
@click.argument('email')
@click.argument('username')
@click.option('--password', prompt=True, hide_input=True, confirmation_prompt=True)
@with_appcontext
def create_admin_command(email, username, password):
    """Create an admin account (or promote an existing one)."""
    user = ensure_admin(_container().auth_service, email, username, password)
    click.echo(f"Admin ready: {user['email']}")


@click.command('set-role')
@click.argument('email')
@click.argument('role', type=click.Choice([r.value for r in UserRole]))
@with_appcontext
def set_role_command(email, role):
    """Change the role of an account."""
    try:
        user = _container().auth_service.change_role(email, UserRole(role))
    except NotFoundError as e:
        raise click.ClickException(e.message)
    click.echo(f"{user['email']} is now {user['role']}")


def register_cli(app) -> None:
    app.cli.add_command(seed_command)
    app.cli.add_command(create_admin_command)
    app.cli.add_command(set_role_command)
