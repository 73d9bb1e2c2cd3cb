"""
Login, logout and bearer credentials.

Tokens are HS256 JWTs carrying the caller's name and role. A participant
token is only honoured while the participant row exists and is marked
logged in, so logout, kick and reset revoke it without a token blacklist.
"""

import hmac
import threading
from datetime import datetime, timedelta, timezone
from typing import Tuple

from jose import JWTError, jwt

from .errors import AlreadyLoggedIn, AuthenticationError
from .events import DashboardRefresh, EventDispatcher
from .storage import ContestStorage
from ..models.models import Identity, Role
from ..utils.logger_config import get_logger

logger = get_logger("sessions")


class SessionManager:
    def __init__(
        self,
        storage: ContestStorage,
        dispatcher: EventDispatcher,
        jwt_secret: str,
        jwt_algorithm: str = "HS256",
        token_expires_minutes: int = 180,
        admin_user: str = "admin",
        admin_password: str = "admin",
        participant_password: str = "contest",
    ):
        self.storage = storage
        self.dispatcher = dispatcher
        self.jwt_secret = jwt_secret
        self.jwt_algorithm = jwt_algorithm
        self.token_expires_minutes = token_expires_minutes
        self.admin_user = admin_user
        self.admin_password = admin_password
        self.participant_password = participant_password
        # Serializes the check-then-create of participant rows
        self._login_lock = threading.Lock()

    def login(self, username: str, password: str, role: str) -> Tuple[Identity, str]:
        """Authenticate and return the identity with a fresh token."""
        username = (username or "").strip()
        self.storage.append_log(f"[LOG] Login attempt: {username} as {role}")

        if role == Role.ADMIN.value:
            if not (_matches(username, self.admin_user) and _matches(password, self.admin_password)):
                raise AuthenticationError("invalid admin credentials")
            self.storage.append_log(f"[LOG] Admin '{username}' logged in.")
            identity = Identity(name=username, role=Role.ADMIN)

        elif role == Role.PARTICIPANT.value:
            if not username or not _matches(password, self.participant_password):
                raise AuthenticationError("invalid participant credentials")
            identity = self._login_participant(username)

        else:
            raise AuthenticationError(f"unknown role '{role}'")

        self.dispatcher.publish(DashboardRefresh())
        logger.info(f"{identity.role.value} '{identity.name}' logged in")
        return identity, self.issue_token(identity)

    def _login_participant(self, username: str) -> Identity:
        with self._login_lock:
            existing = self.storage.get_participant(username)
            if existing is None:
                self.storage.create_participant(username, is_logged_in=True)
                self.storage.append_log(f"[LOG] Participant '{username}' registered and logged in.")
            elif existing.is_logged_in:
                self.storage.append_log(f"[WARNING] Blocked concurrent login attempt for '{username}'.")
                logger.warning(f"Blocked concurrent login for {username}")
                raise AlreadyLoggedIn(username)
            else:
                self.storage.set_logged_in(username, True)
                self.storage.append_log(f"[LOG] Participant '{username}' re-logged in.")
        return Identity(name=username, role=Role.PARTICIPANT)

    def logout(self, username: str) -> bool:
        if not self.storage.set_logged_in(username, False):
            return False
        self.storage.append_log(f"[LOG] Participant '{username}' logged out.")
        self.dispatcher.publish(DashboardRefresh())
        logger.info(f"Participant '{username}' logged out")
        return True

    def issue_token(self, identity: Identity) -> str:
        expires = datetime.now(timezone.utc) + timedelta(minutes=self.token_expires_minutes)
        claims = {"sub": identity.name, "role": identity.role.value, "exp": expires}
        return jwt.encode(claims, self.jwt_secret, algorithm=self.jwt_algorithm)

    def verify_token(self, token: str) -> Identity:
        """Decode a token, raising AuthenticationError if it is invalid or expired."""
        try:
            claims = jwt.decode(token, self.jwt_secret, algorithms=[self.jwt_algorithm])
        except JWTError as e:
            raise AuthenticationError(f"invalid or expired token: {e}") from e

        name = claims.get("sub")
        try:
            role = Role(claims.get("role"))
        except ValueError as e:
            raise AuthenticationError("token carries an unknown role") from e
        if not name:
            raise AuthenticationError("token carries no subject")
        return Identity(name=name, role=role)

    def is_session_active(self, identity: Identity) -> bool:
        """Admins are stateless; participants must still exist and be logged in."""
        if identity.is_admin:
            return True
        participant = self.storage.get_participant(identity.name)
        return participant is not None and participant.is_logged_in


def _matches(given: str, expected: str) -> bool:
    return hmac.compare_digest((given or "").encode("utf-8"), (expected or "").encode("utf-8"))
