"""
Demo authentication backed by the key-value storage.

- Credential records live under USERS_KEY, the active session under CURRENT_USER_KEY
- Passwords are stored as salted PBKDF2-SHA256 hashes
- Session tokens are signed JWTs; logging out revokes the stored session

Env vars:
- JWT_SECRET (default for dev only)
- SESSION_EXPIRES_MIN (default 1440)
- PASSWORD_MIN_LENGTH (default 8)
- PASSWORD_HASH_ITERATIONS (default 200000)
"""
import hashlib
import hmac
import json
import logging
import os
import secrets
import uuid
from datetime import datetime, timedelta, timezone
from threading import RLock
from typing import Dict, List, Optional

import jwt
from dotenv import load_dotenv
from pydantic import ValidationError

from core.storage import KeyValueStorage
from core.utils import int_env
from models import User

load_dotenv()

logger = logging.getLogger(__name__)

USERS_KEY = "fv_users"
CURRENT_USER_KEY = "fv_current_user"

JWT_ALGORITHM = "HS256"
GOOGLE_AVATAR_URL = "https://ui-avatars.com/api/?name=Google+User&background=0D8ABC&color=fff"


class AuthError(Exception):
    """Base class for authentication failures shown to the user."""


class InvalidEmail(AuthError):
    pass


class WeakPassword(AuthError):
    pass


class UserExists(AuthError):
    pass


class InvalidCredentials(AuthError):
    pass


class InvalidSession(AuthError):
    pass


def hash_password(password: str, salt: Optional[bytes] = None, iterations: Optional[int] = None) -> Dict[str, object]:
    salt = salt or secrets.token_bytes(16)
    iterations = iterations or int_env("PASSWORD_HASH_ITERATIONS", 200_000)
    digest = hashlib.pbkdf2_hmac("sha256", password.encode("utf-8"), salt, iterations)
    return {"salt": salt.hex(), "passwordHash": digest.hex(), "iterations": iterations}


def verify_password(password: str, record: Dict[str, object]) -> bool:
    try:
        salt = bytes.fromhex(str(record["salt"]))
        expected = str(record["passwordHash"])
        iterations = int(record["iterations"])
        if iterations <= 0:
            return False
        digest = hashlib.pbkdf2_hmac("sha256", password.encode("utf-8"), salt, iterations)
    except (KeyError, TypeError, ValueError):
        return False
    return hmac.compare_digest(digest.hex(), expected)


class AuthService:
    def __init__(
        self,
        storage: KeyValueStorage,
        secret: Optional[str] = None,
        expires_min: Optional[int] = None,
        min_password_length: Optional[int] = None,
    ) -> None:
        self._storage = storage
        self._secret = secret or os.getenv("JWT_SECRET", "dev-secret-change-me")
        self._expires_min = expires_min or int_env("SESSION_EXPIRES_MIN", 1440)
        self._min_password_length = min_password_length or int_env("PASSWORD_MIN_LENGTH", 8)
        self._lock = RLock()

    # -- storage helpers -------------------------------------------------
    def _load_users(self) -> List[Dict[str, object]]:
        raw = self._storage.get_item(USERS_KEY)
        if not raw:
            return []
        try:
            users = json.loads(raw)
        except json.JSONDecodeError:
            logger.exception("Stored users are corrupt, treating as empty")
            return []
        return [u for u in users if isinstance(u, dict)] if isinstance(users, list) else []

    def _save_users(self, users: List[Dict[str, object]]) -> None:
        self._storage.set_item(USERS_KEY, json.dumps(users))

    def _issue_session(self, user_id: str, name: str, email: str, avatar: Optional[str] = None) -> User:
        now = datetime.now(timezone.utc)
        payload = {
            "sub": user_id,
            "name": name,
            "email": email,
            "iat": int(now.timestamp()),
            "exp": int((now + timedelta(minutes=self._expires_min)).timestamp()),
            "jti": secrets.token_hex(8),
        }
        token = jwt.encode(payload, self._secret, algorithm=JWT_ALGORITHM)
        session = User(id=user_id, name=name, email=email, token=token, avatar=avatar)
        self._storage.set_item(CURRENT_USER_KEY, session.model_dump_json(by_alias=True))
        return session

    def _stored_session(self) -> Optional[User]:
        raw = self._storage.get_item(CURRENT_USER_KEY)
        if not raw:
            return None
        try:
            return User.model_validate_json(raw)
        except ValidationError:
            logger.exception("Stored session is corrupt, ignoring it")
            return None

    # -- public API ------------------------------------------------------
    def signup(self, name: str, email: str, password: str) -> User:
        email = (email or "").strip().lower()
        if "@" not in email:
            raise InvalidEmail("Invalid email address")
        if len(password or "") < self._min_password_length:
            raise WeakPassword(f"Password must be at least {self._min_password_length} characters")

        with self._lock:
            users = self._load_users()
            if any(u.get("email") == email for u in users):
                raise UserExists("User already exists")

            record = {"id": uuid.uuid4().hex, "name": name, "email": email}
            record.update(hash_password(password))
            users.append(record)
            self._save_users(users)

        logger.info("Signed up user %s", email)
        return self._issue_session(record["id"], name, email)

    def login(self, email: str, password: str) -> User:
        email = (email or "").strip().lower()
        user = next((u for u in self._load_users() if u.get("email") == email), None)
        if not user or not verify_password(password or "", user):
            logger.info("Rejected login for %s", email)
            raise InvalidCredentials("Invalid email or password")
        return self._issue_session(str(user["id"]), str(user.get("name", "")), email)

    def login_with_google(self) -> User:
        # No OAuth round-trip: a synthetic Google identity always signs in
        return self._issue_session(
            f"google-{uuid.uuid4().hex}", "Google User", "user@gmail.com", avatar=GOOGLE_AVATAR_URL
        )

    def logout(self) -> None:
        self._storage.remove_item(CURRENT_USER_KEY)

    def reset_password(self, email: str) -> None:
        # Same outcome whether or not the account exists
        logger.info("Password reset requested")
        return None

    def get_current_user(self) -> Optional[User]:
        session = self._stored_session()
        if session is None:
            return None
        try:
            jwt.decode(session.token, self._secret, algorithms=[JWT_ALGORITHM])
        except jwt.PyJWTError:
            return None
        return session

    def verify_token(self, token: str) -> User:
        """Return the session user for `token`, which must be the active, unexpired session."""
        try:
            jwt.decode(token, self._secret, algorithms=[JWT_ALGORITHM])
        except jwt.ExpiredSignatureError as exc:
            raise InvalidSession("Session expired") from exc
        except jwt.PyJWTError as exc:
            raise InvalidSession("Invalid session token") from exc

        session = self._stored_session()
        if session is None or not hmac.compare_digest(session.token, token):
            raise InvalidSession("Session is no longer active")
        return session
