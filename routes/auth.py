from flask import Blueprint, request, jsonify, current_app, g

from models import db
from models.user import ROLE_GUEST, Role, User
from security.password import hash_password, verify_password
from security.session import cookie_name, end_session, start_session
from services.errors import BookingServiceError, UnauthorizedError, ValidationError
from services.inputs import json_object
from utils.audit import log_event
from utils.auth_context import login_required

auth_bp = Blueprint("auth", __name__, url_prefix="/auth")

MIN_PASSWORD_LENGTH = 8


class EmailTakenError(BookingServiceError):
    status_code = 409
    message = "Email already registered"


def _text(data: dict, key: str) -> str:
    value = data.get(key)
    return value if isinstance(value, str) else ""


def _credentials(data: dict):
    return _text(data, "email").strip().lower(), _text(data, "password")


@auth_bp.post("/register")
def register():
    """Guests sign themselves up; ADMIN is granted with `flask make-admin`."""
    data = json_object(request.get_json(silent=True))
    email, password = _credentials(data)
    full_name = _text(data, "full_name").strip() or None

    if "@" not in email or len(email) > 255:
        raise ValidationError("Invalid email")
    if len(password) < MIN_PASSWORD_LENGTH:
        raise ValidationError(f"Password must be at least {MIN_PASSWORD_LENGTH} characters")
    if User.query.filter_by(email=email).first():
        raise EmailTakenError()

    user = User(email=email, password_hash=hash_password(password), full_name=full_name)
    guest_role = Role.query.filter_by(name=ROLE_GUEST).first()
    if guest_role:
        user.roles.append(guest_role)
    db.session.add(user)
    db.session.commit()

    log_event("REGISTER", user_id=user.id, entity="user", entity_id=user.id)
    return jsonify(message="Registered", id=user.id), 201


@auth_bp.post("/login")
def login():
    email, password = _credentials(json_object(request.get_json(silent=True)))

    user = User.query.filter_by(email=email).first()
    if not user or not verify_password(password, user.password_hash):
        log_event("LOGIN_FAIL", user_id=user.id if user else None, metadata={"email": email})
        raise UnauthorizedError("Invalid credentials")

    raw_token = start_session(user.id)

    resp = jsonify(message="Login OK", roles=sorted(user.role_names))
    resp.set_cookie(
        cookie_name(),
        raw_token,
        httponly=True,
        secure=current_app.config.get("SESSION_COOKIE_SECURE", False),
        samesite=current_app.config.get("SESSION_COOKIE_SAMESITE", "Lax"),
        max_age=current_app.config.get("SESSION_LIFETIME_SECONDS", 8 * 60 * 60),
        path="/",
    )

    log_event("LOGIN_SUCCESS", user_id=user.id)
    return resp, 200


@auth_bp.get("/me")
@login_required
def me():
    return jsonify(
        id=g.user.id,
        email=g.user.email,
        full_name=g.user.full_name,
        roles=sorted(g.user.role_names),
    ), 200


@auth_bp.post("/logout")
@login_required
def logout():
    end_session(request.cookies.get(cookie_name()))
    log_event("LOGOUT", user_id=g.user.id)

    resp = jsonify(message="Logged out")
    resp.delete_cookie(cookie_name(), path="/")
    return resp, 200
