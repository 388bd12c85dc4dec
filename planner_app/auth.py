import logging

import jwt
from flask import Blueprint, g, jsonify
from flask_jwt_extended import create_access_token, decode_token
from flask_jwt_extended.exceptions import JWTDecodeError
from flask_login import LoginManager, current_user, login_required
from werkzeug.security import check_password_hash, generate_password_hash

from .db import User, db
from .errors import AuthenticationError, ValidationError
from .validation import json_body, require_text, validate_email

logger = logging.getLogger(__name__)

auth_bp = Blueprint('auth', __name__)
login_manager = LoginManager()
# Bearer tokens only; no session cookie
login_manager.session_protection = None

MIN_PASSWORD_LENGTH = 6
MIN_NAME_LENGTH = 2


@login_manager.request_loader
def load_user_from_request(request):
    """Resolve the bearer token on the request to a user, or record why not."""
    header = request.headers.get('Authorization')
    if not header:
        g.auth_error = 'No token provided'
        return None
    scheme, _, token = header.partition(' ')
    token = token.strip()
    if scheme != 'Bearer' or not token:
        g.auth_error = 'Invalid token format'
        return None
    try:
        claims = decode_token(token)
    except jwt.ExpiredSignatureError:
        g.auth_error = 'Token has expired'
        return None
    except jwt.InvalidSignatureError:
        g.auth_error = 'Invalid token signature'
        return None
    except (jwt.InvalidTokenError, JWTDecodeError):
        g.auth_error = 'Malformed token'
        return None
    user = db.session.get(User, str(claims.get('sub')))
    if not user:
        g.auth_error = 'User not found'
        return None
    return user


@login_manager.unauthorized_handler
def unauthorized():
    message = g.pop('auth_error', 'Please authenticate')
    logger.info('Rejected request: %s', message)
    raise AuthenticationError(message)


def issue_token(user):
    return create_access_token(identity=user.id)


def _auth_payload(user, token=None):
    data = {'user': user.to_public()}
    if token:
        data['token'] = token
    return data


@auth_bp.post('/register')
def register():
    data = json_body()
    email = data.get('email')
    password = data.get('password')
    full_name = data.get('fullName')
    if not email or not password or not full_name:
        raise ValidationError('All fields are required')
    if not validate_email(email):
        raise ValidationError('Invalid email format')
    if not isinstance(password, str) or len(password) < MIN_PASSWORD_LENGTH:
        raise ValidationError(f'Password must be at least {MIN_PASSWORD_LENGTH} characters')
    full_name = require_text(data, 'fullName', f'Full name must be at least {MIN_NAME_LENGTH} characters', MIN_NAME_LENGTH)
    email = email.strip().lower()
    if User.query.filter_by(email=email).first():
        logger.info('Registration rejected, email already registered: %s', email)
        raise ValidationError('Email already registered')
    user = User(email=email, full_name=full_name, password_hash=generate_password_hash(password))
    db.session.add(user)
    db.session.commit()
    logger.info('User registered: %s', user.id)
    return jsonify({'success': True, 'data': _auth_payload(user, issue_token(user))}), 201


@auth_bp.post('/login')
def login():
    data = json_body()
    email = data.get('email')
    password = data.get('password')
    if not email or not password or not isinstance(email, str) or not isinstance(password, str):
        raise ValidationError('Email and password are required')
    user = User.query.filter_by(email=email.strip().lower()).first()
    if not user or not check_password_hash(user.password_hash, password):
        logger.info('Failed login for %s', email)
        raise AuthenticationError('Invalid credentials')
    logger.info('User logged in: %s', user.id)
    return jsonify({'success': True, 'data': _auth_payload(user, issue_token(user))})


@auth_bp.get('/me')
@login_required
def me():
    return jsonify({'success': True, 'data': _auth_payload(current_user)})
