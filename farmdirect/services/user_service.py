"""User registration and login service."""
import logging
from typing import Any, Dict, Tuple

from sqlalchemy.orm import Session

from farmdirect.auth import create_access_token, hash_password, verify_password
from farmdirect.exceptions import AuthenticationError, ValidationError
from farmdirect.models import User, to_iso
from farmdirect.monitoring import auth_attempts_counter, auth_failures_counter
from farmdirect.schemas import LoginRequest, RegisterRequest

logger = logging.getLogger(__name__)


def serialize_user(user: User) -> Dict[str, Any]:
    """Public view of a user; the password hash never leaves the service."""
    return {
        "id": user.id,
        "name": user.name,
        "email": user.email,
        "phone": user.phone,
        "type": user.type,
        "farmLocation": user.farm_location,
        "createdAt": to_iso(user.created_at),
    }


class UserService:
    """Service for buyer and farmer accounts."""

    def register(self, db: Session, request: RegisterRequest) -> Tuple[User, str]:
        """
        Create an account and issue its first token.

        Args:
            db: Database session
            request: Validated registration payload

        Returns:
            Tuple of (user, access token)

        Raises:
            ValidationError: If the email is taken or a farmer omits the farm location
        """
        if request.type == "farmer" and not request.farm_location:
            raise ValidationError("Please provide farm location")

        if db.query(User).filter(User.email == request.email).first():
            raise ValidationError("User already exists")

        user = User(
            name=request.name,
            email=request.email,
            phone=request.phone,
            password_hash=hash_password(request.password),
            type=request.type,
            farm_location=request.farm_location if request.type == "farmer" else None,
        )
        db.add(user)
        db.commit()
        db.refresh(user)

        logger.info("User registered", extra={"user_id": user.id, "user_type": user.type})
        return user, create_access_token(user)

    def login(self, db: Session, request: LoginRequest) -> Tuple[User, str]:
        """
        Authenticate user and return token.

        Raises:
            AuthenticationError: If the email is unknown or the password is wrong
        """
        auth_attempts_counter.add(1, {"type": "login"})

        user = db.query(User).filter(User.email == request.email).first()
        if user is None:
            auth_failures_counter.add(1, {"reason": "invalid_email"})
            logger.warning("Login failed: Unknown email", extra={"email": request.email})
            raise AuthenticationError("Invalid credentials")

        if not verify_password(request.password, user.password_hash):
            auth_failures_counter.add(1, {"reason": "invalid_password"})
            logger.warning("Login failed: Invalid password", extra={"user_id": user.id})
            raise AuthenticationError("Invalid credentials")

        logger.info("User logged in successfully", extra={"user_id": user.id, "user_type": user.type})
        return user, create_access_token(user)
