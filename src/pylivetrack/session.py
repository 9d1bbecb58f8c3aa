"""Session inputs handed over by the host application."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, field_validator

from pylivetrack.exceptions import SessionError


class Session(BaseModel):
    """Identity and credential of the local user.

    Credential storage and login flows live outside this library; the
    host passes the result in.

    Parameters
    ----------
    user_id : str
        The local user's ID.  Stream messages carrying this ID are
        ignored so the local user never tracks itself.
    username : str
        Display name published with every outbound location.
    token : str or None
        Bearer token for the stream and backend API.  Without one the
        stream client refuses to connect.
    """

    model_config = ConfigDict(
        frozen=True,
        extra="forbid",
        validate_default=True,
        str_strip_whitespace=True,
    )

    user_id: str
    username: str = ""
    token: str | None = None

    @field_validator("token")
    @classmethod
    def _blank_token_is_none(cls, value: str | None) -> str | None:
        return value or None

    @property
    def has_token(self) -> bool:
        return self.token is not None

    def require_token(self) -> str:
        if self.token is None:
            raise SessionError("No session token; sign in before connecting")
        return self.token

    def authorization_header(self) -> dict[str, str]:
        return {"Authorization": f"Bearer {self.require_token()}"}
