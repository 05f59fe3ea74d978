from pydantic import BaseModel


class SessionResponse(BaseModel):
    """
    Schema for the current session.

    capabilities maps every page to the operations the session may perform;
    the UI gates both route entry and action buttons on it.
    """

    user_id: int
    auth_user_id: str
    email: str | None
    full_name: str | None
    role: str | None
    is_superuser: bool
    capabilities: dict[str, list[str]]


class SignOutResponse(BaseModel):
    signed_out: bool = True
