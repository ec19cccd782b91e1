"""Bearer tokens and credentials.

A deliberately small stand-in for the account system: bcrypt hashes in the
user store, HS256 JWTs carrying the user id.
"""
import logging
import time
from typing import Optional

import bcrypt
import jwt

from posterlink import config
from posterlink.errors import (AuthFailure, EmailAlreadyRegistered, InvalidCredentials,
                               PasswordTooLong, UserNotFound)
from posterlink.models import User
from posterlink.utils import user_store

logger = logging.getLogger(__name__)

# bcrypt only hashes the first 72 bytes and newer releases refuse longer input.
MAX_PASSWORD_BYTES = 72

ALGORITHM = "HS256"
BCRYPT_ROUNDS = 12


class AuthService:
    def __init__(self, secret: Optional[str] = None, expires_seconds: Optional[int] = None,
                 rounds: int = BCRYPT_ROUNDS):
        self.secret = secret if secret is not None else config.JWT_SECRET
        self.expires_seconds = expires_seconds if expires_seconds is not None else config.JWT_EXPIRES_SECONDS
        self.rounds = rounds
        if not self.secret:
            logger.warning("JWT_SECRET is empty; issued tokens are not secure")

    # Tokens

    def create_token(self, user: User) -> str:
        now = int(time.time())
        payload = {"id": user.user_id, "email": user.email, "iat": now, "exp": now + self.expires_seconds}
        return jwt.encode(payload, self.secret, algorithm=ALGORITHM)

    def resolve_caller(self, authorization: Optional[str]) -> User:
        """Map an ``Authorization`` header to a stored user.

        Missing header, malformed header and bad/expired token are all
        AuthFailure (401); a valid token for a vanished user is UserNotFound.
        """
        if not authorization:
            raise AuthFailure("Authorization token required.")

        parts = authorization.split()
        if len(parts) != 2 or parts[0].lower() != "bearer":
            raise AuthFailure("Invalid token format.")

        try:
            decoded = jwt.decode(parts[1], self.secret, algorithms=[ALGORITHM])
        except jwt.ExpiredSignatureError:
            raise AuthFailure("Token expired.")
        except jwt.InvalidTokenError:
            raise AuthFailure()

        user_id = decoded.get("id")
        if not user_id:
            raise AuthFailure()

        user = user_store.get_user(user_id)
        if not user:
            raise UserNotFound()
        return user

    # Credentials

    def register(self, name: str, email: str, password: str) -> User:
        email = email.strip().lower()
        secret = password.encode("utf-8")
        if len(secret) > MAX_PASSWORD_BYTES:
            raise PasswordTooLong()
        hashed = bcrypt.hashpw(secret, bcrypt.gensalt(rounds=self.rounds))
        user = user_store.create_user(name.strip(), email, hashed.decode("utf-8"))
        if not user:
            raise EmailAlreadyRegistered()
        logger.info("Registered user %s", user.user_id)
        return user

    def login(self, email: str, password: str) -> User:
        user = user_store.get_user_by_email(email.strip().lower())
        secret = password.encode("utf-8")
        if not user or len(secret) > MAX_PASSWORD_BYTES:
            raise InvalidCredentials()
        if not bcrypt.checkpw(secret, user.password_hash.encode("utf-8")):
            raise InvalidCredentials()
        return user
