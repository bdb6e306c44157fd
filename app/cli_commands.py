"""
Flask CLI commands.

Commands:
- flask init-db: Create all tables
- flask create-admin: Create an admin account
- flask seed-demo: Load a demo product with variants and discounts
"""

import click
import re
from datetime import date, timedelta
from decimal import Decimal
from app.database import db_session, create_all
from app.exceptions import BusinessLogicError
from app.forms.base import EMAIL_PATTERN
from app.models import Product, Variant, Discount, DiscountType, UserRole
from app.services.auth_service import register_user


def init_cli_commands(app):
    """Register CLI commands with Flask app."""

    @app.cli.command('init-db')
    def init_db_command():
        """Create database tables."""
        create_all()
        click.echo(click.style('✅ Tablas creadas', fg='green'))

    @app.cli.command('create-admin')
    @click.option('--email', prompt=True, help='Admin email address')
    @click.option('--password', prompt=True, hide_input=True, confirmation_prompt=True, help='Admin password')
    @click.option('--name', default=None, help='Full name')
    def create_admin(email, password, name):
        """Create a new admin account for the /api/admin endpoints."""

        # Validate email format
        if not re.match(EMAIL_PATTERN, email):
            raise click.BadParameter('Email inválido. Use formato: user@example.com', param_hint='--email')

        if len(password) < 6:
            raise click.BadParameter('La contraseña debe tener al menos 6 caracteres.', param_hint='--password')

        try:
            admin = register_user(db_session, email, password, full_name=name, role=UserRole.ADMIN)
        except BusinessLogicError as e:
            raise click.ClickException(e.message)

        click.echo(click.style('\n✅ Administrador creado exitosamente!', fg='green', bold=True))
        click.echo(f'   Email: {admin.email}')
        click.echo(f'   ID: {admin.id}')

    @app.cli.command('seed-demo')
    def seed_demo():
        """Load a demo product, two variants, a product discount and an amount tier."""
        if db_session.query(Product).filter_by(slug='remera-basica').first():
            click.echo('Datos demo ya cargados')
            return

        today = date.today()
        product = Product(name='Remera básica', slug='remera-basica', price=Decimal('50000'),
                          description='Remera de algodón', active=True)
        small = Variant(name='Remera básica S', slug='remera-basica-s', sku='REM-S',
                        price=Decimal('50000'), stock=20, active=True)
        large = Variant(name='Remera básica L', slug='remera-basica-l', sku='REM-L',
                        price=Decimal('55000'), stock=10, active=True)
        product.variants.extend([small, large])

        try:
            db_session.add(product)
            db_session.flush()
            db_session.add_all([
                Discount(kind=DiscountType.PRODUCT.value, value=Decimal('10'), active=True,
                         description='Lanzamiento', date_from=today, date_to=today + timedelta(days=30),
                         variant_id=small.id),
                Discount(kind=DiscountType.AMOUNT.value, value=Decimal('5'), active=True,
                         description='Compras desde 100.000 Gs', date_from=today,
                         date_to=today + timedelta(days=30),
                         amount_from=Decimal('100000'), amount_to=Decimal('99999999')),
            ])
            db_session.commit()
        except Exception:
            db_session.rollback()
            raise

        click.echo(click.style(f'✅ Producto demo {product.id} con {len(product.variants)} variantes', fg='green'))
