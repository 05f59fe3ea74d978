"""Session context for request authorization."""

from dataclasses import dataclass
from bizdesk.models.user import User


@dataclass
class SessionContext:
    """
    Identity and role of the caller, resolved once per request.

    Attributes:
        user: The authenticated User object
        role: The resolved session role, or None when the user holds no role
        is_superuser: True when the resolved role is flagged as superuser
        break_glass: True when the email is configured for break-glass access
    """

    user: User
    role: str | None
    is_superuser: bool = False
    break_glass: bool = False

    @property
    def email(self) -> str | None:
        return self.user.email

    def __repr__(self) -> str:
        return f"<SessionContext(user_id={self.user.id}, role={self.role})>"
