"""Account storage, password hashing and bearer tokens.

Passwords are hashed with passlib; access tokens are HS256 JWTs whose
``sub`` claim is the user id.
"""
import logging
from datetime import datetime, timedelta, timezone
from typing import Optional

import jwt
from passlib.context import CryptContext

from app.database import Database

from .schemas import User

logger = logging.getLogger(__name__)

pwd_context = CryptContext(schemes=["pbkdf2_sha256"], deprecated="auto")

_COLUMNS = "id, username, password, email, dark_mode, tts_credits, created_at"


def hash_password(password: str) -> str:
    return pwd_context.hash(password)


def verify_password(password: str, password_hash: str) -> bool:
    return pwd_context.verify(password, password_hash)


def create_access_token(
    user_id: int,
    secret_key: str,
    algorithm: str = "HS256",
    expire_minutes: int = 60,
) -> str:
    """Issue a signed access token for *user_id*."""
    expires_at = datetime.now(timezone.utc) + timedelta(minutes=expire_minutes)
    payload = {"sub": str(user_id), "exp": expires_at}
    return jwt.encode(payload, secret_key, algorithm=algorithm)


def decode_access_token(
    token: str,
    secret_key: str,
    algorithm: str = "HS256",
) -> Optional[int]:
    """Return the user id carried by *token*, or None if it is invalid."""
    try:
        payload = jwt.decode(token, secret_key, algorithms=[algorithm])
    except jwt.ExpiredSignatureError:
        logger.debug("Access token has expired")
        return None
    except jwt.InvalidTokenError as e:
        logger.debug("Invalid access token: %s", e)
        return None

    try:
        return int(payload.get("sub", ""))
    except ValueError:
        return None


class UserService:
    """CRUD over the ``users`` table."""

    _instance: Optional["UserService"] = None

    def __init__(self, db: Optional[Database] = None) -> None:
        self._db = db

    @property
    def db(self) -> Database:
        return self._db or Database.get_instance()

    @classmethod
    def get_instance(cls) -> "UserService":
        if cls._instance is None:
            cls._instance = cls()
        return cls._instance

    @classmethod
    def reset_instance(cls) -> None:
        cls._instance = None

    def create_user(
        self,
        username: str,
        password_hash: str,
        email: Optional[str] = None,
        tts_credits: int = 100,
    ) -> User:
        row = self.db.fetchone(
            f"""
            INSERT INTO users (username, password, email, dark_mode, tts_credits, created_at)
            VALUES (?, ?, ?, FALSE, ?, ?)
            RETURNING {_COLUMNS}
            """,
            [username, password_hash, email, tts_credits, datetime.now()],
        )
        return self._row_to_user(row)

    def get_user(self, user_id: int) -> Optional[User]:
        row = self.db.fetchone(f"SELECT {_COLUMNS} FROM users WHERE id = ?", [user_id])
        return self._row_to_user(row) if row else None

    def get_user_by_username(self, username: str) -> Optional[User]:
        row = self.db.fetchone(
            f"SELECT {_COLUMNS} FROM users WHERE username = ?", [username]
        )
        return self._row_to_user(row) if row else None

    def update_user(self, user_id: int, **kwargs) -> Optional[User]:
        """Update preference fields; unknown or None values are ignored."""
        allowed = {"dark_mode", "email"}
        fields = {k: v for k, v in kwargs.items() if k in allowed and v is not None}
        if not fields:
            return self.get_user(user_id)

        set_clause = ", ".join(f"{k} = ?" for k in fields)
        values = list(fields.values()) + [user_id]
        self.db.execute(f"UPDATE users SET {set_clause} WHERE id = ?", values)
        return self.get_user(user_id)

    @staticmethod
    def _row_to_user(row) -> User:
        return User(
            id=row[0],
            username=row[1],
            password=row[2],
            email=row[3],
            dark_mode=row[4],
            tts_credits=row[5],
            created_at=row[6],
        )
