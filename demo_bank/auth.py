"""
Authentication Module

Password hashing, login and JWT issuance/verification. A successful
authentication yields a user id that the banking core trusts as is.
"""

from datetime import datetime, timezone, timedelta
from typing import Any, Dict, Optional
import hashlib
import hmac
import secrets

import jwt

from .accounts import User
from .config import BankingConfig, get_config
from .errors import InvalidCredentials, InvalidRequest, InvalidToken
from .ledger import UserLedger
from .logging_config import get_logger, log_action


class AuthService:
    """
    Registers users and exchanges credentials for bearer tokens
    """

    def __init__(self, ledger: UserLedger, config: Optional[BankingConfig] = None):
        self.ledger = ledger
        self.config = config or get_config()
        self.logger = get_logger("demo_bank.auth")

    def _generate_salt(self) -> str:
        """Generate random salt for password hashing"""
        return secrets.token_hex(16)

    def _scrypt(self, password: str, salt: str) -> str:
        return hashlib.scrypt(
            password.encode(),
            salt=salt.encode(),
            n=self.config.scrypt_n,
            r=self.config.scrypt_r,
            p=self.config.scrypt_p
        ).hex()

    def hash_password(self, password: str) -> str:
        """Hash a password with a fresh salt, stored as ``salt$hash``"""
        salt = self._generate_salt()
        return f"{salt}${self._scrypt(password, salt)}"

    def verify_password(self, password: str, stored: str) -> bool:
        salt, _, expected = stored.partition("$")
        if not salt or not expected:
            return False
        return hmac.compare_digest(self._scrypt(password, salt), expected)

    def register(self, name: str, email: str, password: str) -> User:
        """Create a user from plain credentials"""
        if not name or not email or not password:
            raise InvalidRequest("Name, email and password are required")
        return self.ledger.create_user(name, email, self.hash_password(password))

    def login(self, email: str, password: str) -> Dict[str, Any]:
        """
        Check credentials and issue a token

        Unknown emails and wrong passwords fail with the same error.

        Returns:
            {"token": str, "user": User}
        """
        if not email or not password:
            raise InvalidRequest("Email and password are required")

        user = self.ledger.account_store.find_by_email(email)
        if user is None or not self.verify_password(password, user.password_hash):
            log_action(
                self.logger, "warning", "Login failed",
                action="login", extra={"code": InvalidCredentials.code}
            )
            raise InvalidCredentials()

        log_action(self.logger, "info", "Login succeeded", user_id=user.id, action="login")
        return {"token": self.issue_token(user), "user": user}

    def issue_token(self, user: User) -> str:
        now = datetime.now(timezone.utc)
        payload = {
            "sub": str(user.id),
            "email": user.email,
            "account": user.account,
            "iat": now,
            "exp": now + timedelta(hours=self.config.jwt_expiry_hours),
        }
        return jwt.encode(payload, self.config.jwt_secret, algorithm=self.config.jwt_algorithm)

    def verify_token(self, token: str) -> int:
        """Decode a bearer token and return the user id it carries"""
        try:
            payload = jwt.decode(
                token, self.config.jwt_secret, algorithms=[self.config.jwt_algorithm]
            )
        except jwt.ExpiredSignatureError:
            raise InvalidToken("Token expired")
        except jwt.InvalidTokenError:
            raise InvalidToken()

        try:
            return int(payload["sub"])
        except (KeyError, TypeError, ValueError):
            raise InvalidToken()
