"""
Authentication Manager Module - QR Attendance Tracking System
Author: QR Attendance Team
Date: October 2026

This module is the identity verifier in front of the attendance protocol.
It checks login credentials, keeps the signed-in subject in the Flask
session and gates endpoints by role, so the issuer and validator never see
an unauthenticated or wrongly-privileged caller.

Features:
- Password verification with werkzeug hashes
- Session-backed identity (subject id, role)
- Role-based endpoint guards for 'student' and 'admin'
"""

from werkzeug.security import generate_password_hash, check_password_hash
from flask import session, current_app
from functools import wraps
from typing import Dict, Any, Optional
import logging
from dataclasses import dataclass

from qr_attendance.errors import Unauthenticated, Unauthorized

ROLE_STUDENT = 'student'
ROLE_ADMIN = 'admin'
ROLES = (ROLE_STUDENT, ROLE_ADMIN)


@dataclass(frozen=True)
class Identity:
    """Authenticated caller: who they are and what they may do."""
    subject_id: int
    role: str


class AuthManager:
    """
    Authentication and role checks for the attendance system.
    """

    def __init__(self, record_store):
        """
        Initialize the authentication manager with the record store.

        Args:
            record_store: RecordStore instance
        """
        self.store = record_store
        self.logger = logging.getLogger(__name__)

    def authenticate_user(self, username: str, password: str) -> Optional[Dict[str, Any]]:
        """
        Authenticate user with username and password.

        Args:
            username (str): Username
            password (str): Password

        Returns:
            Dict[str, Any]: Public user information if authenticated, None otherwise
        """
        user = self.store.get_user_by_username(username)

        if not user:
            self.logger.warning(f"Authentication failed - user not found: {username}")
            return None

        if not check_password_hash(user.password_hash, password):
            self.logger.warning(f"Authentication failed - invalid password: {username}")
            return None

        self.logger.info(f"User authenticated successfully: {username}")
        return user.to_dict()

    def create_user(self, username: str, password: str, email: str, name: str,
                    role: str = ROLE_STUDENT, faculty_id: Optional[int] = None):
        if role not in ROLES:
            raise ValueError(f"Unknown role: {role}")
        return self.store.create_user(
            username=username,
            password_hash=generate_password_hash(password),
            email=email,
            name=name,
            role=role,
            faculty_id=faculty_id,
        )

    def login(self, user: Dict[str, Any]) -> None:
        session.clear()
        session['user_id'] = user['id']
        session['role'] = user['role']
        session.permanent = True

    def logout(self) -> None:
        session.clear()

    def current_identity(self) -> Identity:
        """
        Resolve the caller from the Flask session.

        Returns:
            Identity: subject id and role of the signed-in user

        Raises:
            Unauthenticated: nobody is signed in, or the account no longer exists
        """
        user_id = session.get('user_id')
        if user_id is None:
            raise Unauthenticated()

        user = self.store.get_user(user_id)
        if user is None:
            session.clear()
            raise Unauthenticated()

        return Identity(subject_id=user.id, role=user.role)

    def require_role(self, role: Optional[str] = None) -> Identity:
        identity = self.current_identity()
        if role is not None and identity.role != role:
            self.logger.warning(f"User {identity.subject_id} ({identity.role}) denied {role}-only access")
            raise Unauthorized()
        return identity


def role_required(role: Optional[str] = None):
    """
    Decorator that resolves the caller and enforces a role before the view runs.
    The resolved Identity is passed to the view as the `identity` keyword.
    Pass no role to only require a signed-in user.
    """
    def decorator(f):
        @wraps(f)
        def decorated_function(*args, **kwargs):
            auth_manager = current_app.extensions['qr_attendance']['auth_manager']
            kwargs['identity'] = auth_manager.require_role(role)
            return f(*args, **kwargs)
        return decorated_function
    return decorator
