from __future__ import annotations

from dataclasses import asdict, dataclass, field

import httpx


@dataclass
class OutgoingRequest:
    """An API request plus the marker that bounds it to one refresh-and-retry."""

    request: httpx.Request
    retried: bool = False


@dataclass(frozen=True)
class Resolved:
    access: str


@dataclass(frozen=True)
class Rejected:
    error: BaseException


RefreshOutcome = Resolved | Rejected


@dataclass
class User:
    id: int
    username: str
    email: str = ""
    first_name: str = ""
    last_name: str = ""
    phone: str = ""
    role: str = ""
    is_staff: bool = False
    is_superuser: bool = False
    avatar: str | None = None
    uuid: str | None = None
    extra: dict = field(default_factory=dict)

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}".strip() or self.username

    def to_payload(self) -> dict:
        payload = asdict(self)
        extra = payload.pop("extra")
        return {**extra, **payload}

    @classmethod
    def from_payload(cls, payload: dict) -> "User":
        if not isinstance(payload, dict):
            raise RuntimeError("User payload must be a JSON object.")

        user_id = payload.get("id")
        username = payload.get("username")
        if not isinstance(user_id, int):
            raise RuntimeError("User payload missing id.")
        if not isinstance(username, str) or not username:
            raise RuntimeError("User payload missing username.")

        known = {
            "id",
            "username",
            "email",
            "first_name",
            "last_name",
            "phone",
            "role",
            "is_staff",
            "is_superuser",
            "avatar",
            "uuid",
        }
        return cls(
            id=user_id,
            username=username,
            email=payload.get("email") or "",
            first_name=payload.get("first_name") or "",
            last_name=payload.get("last_name") or "",
            phone=payload.get("phone") or "",
            role=payload.get("role") or "",
            is_staff=bool(payload.get("is_staff", False)),
            is_superuser=bool(payload.get("is_superuser", False)),
            avatar=payload.get("avatar"),
            uuid=payload.get("uuid"),
            extra={key: value for key, value in payload.items() if key not in known},
        )


@dataclass
class LoginResponse:
    access: str
    user: User

    @classmethod
    def from_payload(cls, payload: dict) -> "LoginResponse":
        if not isinstance(payload, dict):
            raise RuntimeError("Login response must be a JSON object.")

        access = payload.get("access")
        if not isinstance(access, str) or not access:
            raise RuntimeError("Login response missing access.")

        return cls(access=access, user=User.from_payload(payload.get("user")))
