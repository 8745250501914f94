from flask import request, jsonify, current_app
from werkzeug.security import generate_password_hash, check_password_hash
from flask_jwt_extended import create_access_token

from . import bp
from ..model import User
from ..extensions import db
from ..schemas import SignupRequest, LoginRequest
from ..utils.api import api_error
from ..utils.decorators import login_required, current_user


def _issue_token(user: User) -> str:
    return create_access_token(identity=str(user.id))


@bp.post("/signup")
def signup():
    body = SignupRequest.model_validate(request.get_json(silent=True) or {})
    if User.query.filter_by(email=body.email).first():
        return jsonify(api_error("Email already registered")), 409

    # Bootstrap: very first account becomes admin
    is_first_user = db.session.query(User.id).count() == 0
    user = User(
        name=body.name,
        email=body.email,
        password_hash=generate_password_hash(body.password),
        role="admin" if is_first_user else "user",
    )
    db.session.add(user)
    db.session.commit()
    current_app.logger.info("user %s registered (%s)", user.id, user.role)

    return jsonify({"message": "Account created successfully", "user": user.as_dict(), "token": _issue_token(user)}), 201


@bp.post("/login")
def login():
    body = LoginRequest.model_validate(request.get_json(silent=True) or {})
    user = User.query.filter_by(email=body.email).first()
    if not user or not check_password_hash(user.password_hash, body.password):
        return jsonify(api_error("Invalid email or password")), 401
    return jsonify({"message": "You've logged in successfully", "user": user.as_dict(), "token": _issue_token(user)}), 200


@bp.get("/me")
@login_required
def me():
    return jsonify({"message": "Welcome to your profile!", "user": current_user().as_dict()})
