# artisan_market/cli.py
import click
from datetime import datetime
from werkzeug.security import generate_password_hash

from .extensions import db
from .errors import ApiError
from .model import User, COUPON_TYPES
from .schemas import CouponCreateRequest
from .services import coupon_service


@click.command("create-admin")
@click.option("--email", required=True)
@click.option("--password", required=True)
@click.option("--name", required=True)
def create_admin(email, password, name):
    email = email.strip().lower()
    if User.query.filter_by(email=email).first():
        click.echo("Email already exists"); return
    u = User(email=email, name=name, password_hash=generate_password_hash(password), role="admin")
    db.session.add(u); db.session.commit()
    click.echo(f"Admin created: {u.id} {u.email}")


@click.command("create-coupon")
@click.option("--code", required=True)
@click.option("--type", "ctype", type=click.Choice(COUPON_TYPES), required=True)
@click.option("--amount", type=float, required=True)
@click.option("--min-subtotal", type=float, default=0.0)
@click.option("--usage-limit", type=int, default=0, help="0 = unlimited")
@click.option("--expires-at", type=click.DateTime(), default=None)
def create_coupon(code, ctype, amount, min_subtotal, usage_limit, expires_at: datetime | None):
    body = CouponCreateRequest(
        code=code, type=ctype, amount=amount,
        minSubtotal=min_subtotal, usageLimit=usage_limit, expiresAt=expires_at,
    )
    try:
        c = coupon_service.create_coupon(body)
    except ApiError as e:
        raise click.ClickException(e.message) from e
    click.echo(f"Coupon created: {c.id} {c.code}")


def register_cli(app):
    app.cli.add_command(create_admin)
    app.cli.add_command(create_coupon)
