from flask import Flask, request, g, jsonify
from sqlalchemy.exc import SQLAlchemyError

from config import Config
from routes import health_bp, auth_bp, resource_bp, booking_bp

from models import db
from flask_migrate import Migrate
from services import registry
from services.errors import BookingError, StoreUnavailable
from utils.seed import seed_roles
from utils.auth_context import load_current_user
from security.csrf import require_csrf


CSRF_EXEMPT_PATHS = {
    "/auth/login",
    "/auth/register",
    "/health",
}


def create_app(config_object=Config):
    app = Flask(__name__)
    app.config.from_object(config_object)

    # Register routes
    app.register_blueprint(health_bp)
    app.register_blueprint(auth_bp)
    app.register_blueprint(resource_bp)
    app.register_blueprint(booking_bp)

    # Database init
    db.init_app(app)

    # Migrations
    Migrate(app, db)

    # Process-wide booking exclusion and clock
    registry.init_app(app)

    if app.config.get("CREATE_TABLES_ON_STARTUP"):
        with app.app_context():
            db.create_all()

    # Seed default roles at startup (safe & idempotent)
    if not app.config.get("SKIP_ROLE_SEED"):
        with app.app_context():
            seed_roles()

    @app.before_request
    def _load_user():
        load_current_user()

    @app.before_request
    def _csrf_protect():
        # Only protect state-changing requests
        if request.method not in ("POST", "PUT", "PATCH", "DELETE"):
            return None
        if request.path in CSRF_EXEMPT_PATHS:
            return None

        # Only cookie sessions need it; a Bearer header is never sent implicitly
        cookie_name = app.config.get("AUTH_COOKIE_NAME", "resourcebook_session")
        if getattr(g, "user", None) is not None and request.cookies.get(cookie_name):
            return require_csrf()
        return None

    @app.after_request
    def add_security_headers(resp):
        resp.headers["X-Content-Type-Options"] = "nosniff"
        resp.headers["X-Frame-Options"] = "DENY"
        resp.headers["Referrer-Policy"] = "no-referrer"
        resp.headers["Content-Security-Policy"] = "default-src 'none'; frame-ancestors 'none';"
        return resp

    register_error_handlers(app)
    register_cli(app)

    return app

#-------------------------

def register_error_handlers(app):
    @app.errorhandler(BookingError)
    def _booking_error(exc):
        if isinstance(exc, StoreUnavailable):
            app.logger.exception("storage failure: %s", exc.__cause__ or exc)
        return jsonify(error=exc.message, kind=exc.kind), exc.status_code

    @app.errorhandler(SQLAlchemyError)
    def _db_error(exc):
        db.session.rollback()
        app.logger.exception("unhandled database error")
        return jsonify(error="Storage failure", kind="store_unavailable"), 500

#-------------------------
import click
from models.user import User, Role
from security.identity import ADMIN


def register_cli(app):
    @app.cli.command("make-admin")
    @click.argument("email")
    def make_admin(email):
        """Promote a user to ADMIN by email (bootstrap)."""
        user = User.query.filter_by(email=email.strip().lower()).first()
        if not user:
            click.echo("User not found", err=True)
            raise SystemExit(1)

        admin_role = Role.query.filter_by(name=ADMIN).first()
        if not admin_role:
            admin_role = Role(name=ADMIN)
            db.session.add(admin_role)
            db.session.commit()

        if admin_role not in user.roles:
            user.roles.append(admin_role)
            db.session.commit()

        click.echo(f"{user.email} promoted to ADMIN")

    @app.cli.command("seed-roles")
    def seed_roles_command():
        """Create the USER and ADMIN roles if missing."""
        created = seed_roles()
        click.echo(f"Created roles: {', '.join(created)}" if created else "Roles already present")

#-------------------------


if __name__ == "__main__":
    app = create_app()
    # Run locally
    app.run(host="127.0.0.1", port=5002)
