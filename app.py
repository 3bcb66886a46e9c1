from flask import Flask, jsonify
from config import Config
from routes import health_bp, auth_bp, bookings_bp, hotels_bp, payments_bp, webhook_bp

from models import db
from flask_migrate import Migrate
from werkzeug.exceptions import HTTPException
from services.errors import BookingServiceError
from services.payment_provider import StripePaymentProvider
from utils.seed import seed_roles
from utils.auth_context import load_current_user


def create_app(config_object=Config, payment_provider=None):
    app = Flask(__name__)
    app.config.from_object(config_object)

    # Register routes
    app.register_blueprint(health_bp)
    app.register_blueprint(auth_bp)
    app.register_blueprint(bookings_bp)
    app.register_blueprint(hotels_bp)
    app.register_blueprint(payments_bp)
    app.register_blueprint(webhook_bp)

    # Database init
    db.init_app(app)

    # Migrations
    Migrate(app, db)

    # One provider client per process, handed to the payment services
    app.extensions["payment_provider"] = payment_provider or StripePaymentProvider.from_config(app.config)

    # Seed default roles at startup (safe & idempotent)
    if app.config.get("SEED_ROLES_ON_STARTUP", True):
        with app.app_context():
            seed_roles()

    @app.before_request
    def _load_user():
        load_current_user()

    @app.errorhandler(BookingServiceError)
    def _service_error(exc):
        return jsonify(exc.to_dict()), exc.status_code

    @app.errorhandler(Exception)
    def _unexpected_error(exc):
        # Let Flask render regular HTTP errors (404 route, 405, ...)
        if isinstance(exc, HTTPException):
            return exc
        db.session.rollback()
        app.logger.exception("Unhandled error: %s", exc)
        return jsonify(error="Internal server error"), 500

    @app.after_request
    def add_security_headers(resp):
        resp.headers["X-Content-Type-Options"] = "nosniff"
        resp.headers["X-Frame-Options"] = "DENY"
        resp.headers["Referrer-Policy"] = "no-referrer"
        resp.headers["Content-Security-Policy"] = "default-src 'none'; frame-ancestors 'none';"
        return resp


    register_cli(app)


    return app

#-------------------------
import click
from models.user import ROLE_ADMIN, Role, User
from models.hotel import Hotel

def register_cli(app):
    @app.cli.command("make-admin")
    @click.argument("email")
    def make_admin(email):
        """Promote a user to ADMIN by email (bootstrap)."""
        user = User.query.filter_by(email=email.strip().lower()).first()
        if not user:
            click.echo("User not found")
            return

        admin_role = Role.query.filter_by(name=ROLE_ADMIN).first()
        if not admin_role:
            admin_role = Role(name=ROLE_ADMIN)
            db.session.add(admin_role)
            db.session.commit()

        if admin_role not in user.roles:
            user.roles.append(admin_role)
            db.session.commit()

        click.echo(f"{user.email} promoted to ADMIN")

    @app.cli.command("add-hotel")
    @click.argument("name")
    @click.argument("price_per_night", type=click.IntRange(min=1))
    @click.option("--city", default=None)
    @click.option("--country", default=None)
    def add_hotel(name, price_per_night, city, country):
        """Register a bookable hotel (hotel management lives elsewhere)."""
        hotel = Hotel(name=name.strip(), price_per_night=price_per_night, city=city, country=country)
        db.session.add(hotel)
        db.session.commit()
        click.echo(f"Hotel #{hotel.id} {hotel.name} added at {hotel.price_per_night}/night")

#-------------------------




if __name__ == "__main__":
    app = create_app()
    # Run locally
    app.run(host="127.0.0.1", port=5002)
