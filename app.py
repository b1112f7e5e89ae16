import logging
import time

from flask import Flask, request, g
from config import Config
from routes import (
    health_bp,
    auth_bp,
    users_bp,
    courts_bp,
    time_slots_bp,
    pricing_bp,
    booking_bp,
    admin_bp,
)

from errors import register_error_handlers
from models import db
from flask_migrate import Migrate
from utils.auth_context import load_current_user
from security.csrf import require_csrf

logger = logging.getLogger("courtbook")


def configure_logging(app):
    level = getattr(logging, str(app.config.get("LOG_LEVEL", "INFO")).upper(), logging.INFO)
    logging.basicConfig(
        level=level,
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    )
    logging.getLogger().setLevel(level)
    app.logger.setLevel(level)


def create_app(config_object=Config):
    app = Flask(__name__)
    app.config.from_object(config_object)
    configure_logging(app)

    # Register routes
    app.register_blueprint(health_bp)
    app.register_blueprint(auth_bp)
    app.register_blueprint(users_bp)
    app.register_blueprint(courts_bp)
    app.register_blueprint(time_slots_bp)
    app.register_blueprint(pricing_bp)
    app.register_blueprint(booking_bp)
    app.register_blueprint(admin_bp)

    register_error_handlers(app)

    # Database init
    db.init_app(app)

    # Migrations
    Migrate(app, db)

    @app.before_request
    def _start_timer():
        g.request_started = time.perf_counter()

    @app.before_request
    def _load_user():
        load_current_user()

    @app.before_request
    def _csrf_protect():
        return require_csrf()

    @app.after_request
    def _log_request(resp):
        if request.path.startswith("/api"):
            started = getattr(g, "request_started", None)
            elapsed_ms = (time.perf_counter() - started) * 1000 if started else 0.0
            logger.info("%s %s %s in %.0fms", request.method, request.path, resp.status_code, elapsed_ms)
        return resp

    @app.after_request
    def add_security_headers(resp):
        resp.headers["X-Content-Type-Options"] = "nosniff"
        resp.headers["X-Frame-Options"] = "DENY"
        resp.headers["Referrer-Policy"] = "no-referrer"
        resp.headers["Permissions-Policy"] = "geolocation=(), microphone=(), camera=()"
        resp.headers["Content-Security-Policy"] = "default-src 'none'; frame-ancestors 'none';"
        return resp

    register_cli(app)

    return app

#-------------------------
import click
from decimal import Decimal

from models.court import Court
from models.user import User
from security.password import hash_password, is_well_formed
from security.roles import Role


def register_cli(app):
    @app.cli.command("make-admin")
    @click.argument("email")
    def make_admin(email):
        """Promote a user to admin by email (bootstrap)."""
        user = User.query.filter_by(email=email.strip().lower()).first()
        if not user:
            click.echo("User not found")
            return

        if user.role is not Role.ADMIN:
            user.role = Role.ADMIN
            db.session.commit()

        click.echo(f"{user.email} promoted to admin")

    @app.cli.command("fix-passwords")
    def fix_passwords():
        """Reset every stored password that is not in "hash.salt" form."""
        default_password = app.config.get("DEFAULT_RESET_PASSWORD", "password123")
        users = User.query.all()
        click.echo(f"Found {len(users)} users to check")

        fixed = 0
        for user in users:
            if is_well_formed(user.password):
                continue
            user.password = hash_password(default_password)
            fixed += 1
            click.echo(f"Reset password for {user.username}")
        db.session.commit()

        click.echo(f"Fixed {fixed} user password(s)")
        if fixed:
            click.echo("Ask those users to change their password after logging in.")

    @app.cli.command("seed-demo")
    @click.option("--admin-email", default="admin@example.com")
    @click.option("--admin-password", default="admin123")
    def seed_demo(admin_email, admin_password):
        """Create the tables, an admin account and one court for local runs."""
        db.create_all()
        if not User.query.filter_by(email=admin_email).first():
            db.session.add(User(
                username="admin",
                email=admin_email,
                password=hash_password(admin_password),
                role=Role.ADMIN,
            ))
        if not Court.query.first():
            db.session.add(Court(
                name="Centre Court",
                description="Open 07:00 - 23:00",
                open_time="07:00",
                close_time="23:00",
                hourly_rate=Decimal("20.00"),
            ))
        db.session.commit()
        click.echo("Demo data ready")

#-------------------------




if __name__ == "__main__":
    app = create_app()
    # Run locally
    app.run(host="127.0.0.1", port=5000)
