"""
Core types derived from the Rundeck API.

Response models mirror the server JSON and declare the API version range in
which their schema is valid. Domain models are what the SDK hands back.
"""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, ClassVar

# =============================================================================
# Versioned Responses
# =============================================================================


@dataclass
class VersionedResponse:
    """Base for response models that are only valid for a range of API versions."""

    min_version: ClassVar[int] = 1
    max_version: ClassVar[int | None] = None

    @classmethod
    def supports(cls, api_version: int) -> bool:
        """Check if this schema is valid for the given API version."""
        if api_version < cls.min_version:
            return False
        return cls.max_version is None or api_version <= cls.max_version


def parse_timestamp(value: str | None) -> datetime | None:
    """Parse an ISO 8601 timestamp as returned by Rundeck ("2017-10-01T09:00:20Z")."""
    if not value:
        return None
    if value.endswith("Z"):
        value = value[:-1] + "+00:00"
    return datetime.fromisoformat(value)


def require_login(data: dict[str, Any]) -> str:
    """Return the login of a user payload; it is the unique key and must be a non-empty string."""
    login = data["login"]
    if not isinstance(login, str) or not login:
        raise TypeError(f"user login must be a non-empty string, got {login!r}")
    return login


# =============================================================================
# User Types
# =============================================================================


@dataclass
class UserResponse:
    """A single user as returned by the user list endpoint."""

    login: str
    first_name: str = ""
    last_name: str = ""
    email: str = ""
    # Added in API v27
    created: str | None = None
    updated: str | None = None
    last_job: str | None = None
    tokens: int | None = None

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "UserResponse":
        """Create from API response dict."""
        return cls(
            login=require_login(data),
            first_name=data.get("firstName") or "",
            last_name=data.get("lastName") or "",
            email=data.get("email") or "",
            created=data.get("created"),
            updated=data.get("updated"),
            last_job=data.get("lastJob"),
            tokens=data.get("tokens"),
        )


@dataclass
class ListUsersResponse(VersionedResponse):
    """Response of GET user/list."""

    min_version: ClassVar[int] = 21

    users: list[UserResponse] = field(default_factory=list)

    @classmethod
    def from_list(cls, data: list[dict[str, Any]]) -> "ListUsersResponse":
        """Create from API response list."""
        if not isinstance(data, list):
            raise TypeError(f"expected a JSON array of users, got {type(data).__name__}")
        return cls(users=[UserResponse.from_dict(u) for u in data])


@dataclass
class UserProfileResponse(VersionedResponse):
    """Response of GET/POST user/info and user/info/{login}."""

    min_version: ClassVar[int] = 21

    login: str = ""
    first_name: str = ""
    last_name: str = ""
    email: str = ""

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "UserProfileResponse":
        """Create from API response dict."""
        return cls(
            login=require_login(data),
            first_name=data.get("firstName") or "",
            last_name=data.get("lastName") or "",
            email=data.get("email") or "",
        )


@dataclass(frozen=True)
class User:
    """A Rundeck user."""

    login: str
    first_name: str = ""
    last_name: str = ""
    email: str = ""
    created: datetime | None = None
    updated: datetime | None = None
    last_job: datetime | None = None
    tokens: int = 0

    @classmethod
    def from_response(cls, resp: UserResponse) -> "User":
        """Create from a user list entry, tolerating fields older servers omit."""
        return cls(
            login=resp.login,
            first_name=resp.first_name,
            last_name=resp.last_name,
            email=resp.email,
            created=parse_timestamp(resp.created),
            updated=parse_timestamp(resp.updated),
            last_job=parse_timestamp(resp.last_job),
            tokens=resp.tokens or 0,
        )

    @classmethod
    def from_profile(cls, resp: UserProfileResponse) -> "User":
        """Create from a user profile response."""
        return cls(
            login=resp.login,
            first_name=resp.first_name,
            last_name=resp.last_name,
            email=resp.email,
        )

    def to_dict(self) -> dict[str, Any]:
        """Convert to dict for JSON output."""
        return {
            "login": self.login,
            "first_name": self.first_name,
            "last_name": self.last_name,
            "email": self.email,
            "created": self.created.isoformat() if self.created else None,
            "updated": self.updated.isoformat() if self.updated else None,
            "last_job": self.last_job.isoformat() if self.last_job else None,
            "tokens": self.tokens,
        }


Users = list[User]


@dataclass
class UserInfoUpdate:
    """Request body for modifying a user profile. Only set fields are sent."""

    first_name: str | None = None
    last_name: str | None = None
    email: str | None = None

    @property
    def is_empty(self) -> bool:
        """Check if there is nothing to update."""
        return not (self.first_name or self.last_name or self.email)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dict for API request."""
        data: dict[str, Any] = {}
        if self.first_name:
            data["firstName"] = self.first_name
        if self.last_name:
            data["lastName"] = self.last_name
        if self.email:
            data["email"] = self.email
        return data


# =============================================================================
# ACL Types
# =============================================================================


def require_list(value: Any, name: str) -> list[Any]:
    """Check that a payload field holds a JSON array."""
    if not isinstance(value, list):
        raise TypeError(f"expected {name} to be a JSON array, got {type(value).__name__}")
    return value


@dataclass(frozen=True)
class ACLPolicy:
    """A single ACL policy file."""

    name: str
    path: str
    type: str
    href: str = ""

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "ACLPolicy":
        """Create from API response dict."""
        return cls(
            name=data.get("name", ""),
            path=data.get("path", ""),
            type=data.get("type", ""),
            href=data.get("href", ""),
        )


@dataclass
class ACLResponse(VersionedResponse):
    """Response of GET system/acl/."""

    min_version: ClassVar[int] = 14

    path: str = ""
    type: str = ""
    href: str = ""
    resources: list[ACLPolicy] = field(default_factory=list)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "ACLResponse":
        """Create from API response dict."""
        return cls(
            path=data.get("path") or "",
            type=data.get("type") or "",
            href=data.get("href") or "",
            resources=[ACLPolicy.from_dict(r) for r in require_list(data["resources"], "resources")],
        )


@dataclass(frozen=True)
class ACLPolicies:
    """An ACL policy directory listing."""

    path: str = ""
    type: str = ""
    href: str = ""
    resources: tuple[ACLPolicy, ...] = ()

    @property
    def parent(self) -> str:
        """Directory path shared by every resource; the root when the server sends none."""
        return self.path or "/"

    @classmethod
    def from_response(cls, resp: ACLResponse) -> "ACLPolicies":
        """Create from a system ACL listing."""
        return cls(path=resp.path, type=resp.type, href=resp.href, resources=tuple(resp.resources))


# =============================================================================
# System Types
# =============================================================================


@dataclass
class SystemInfoResponse(VersionedResponse):
    """Response of GET system/info."""

    min_version: ClassVar[int] = 1

    rundeck: dict[str, Any] = field(default_factory=dict)
    executions: dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "SystemInfoResponse":
        """Create from API response dict."""
        system = data["system"]
        return cls(
            rundeck=system.get("rundeck") or {},
            executions=system.get("executions") or {},
        )


@dataclass(frozen=True)
class SystemInfo:
    """Rundeck server information."""

    version: str
    build: str = ""
    node: str = ""
    base: str = ""
    api_version: int = 0
    server_uuid: str = ""
    execution_mode: str = ""

    @classmethod
    def from_response(cls, resp: SystemInfoResponse) -> "SystemInfo":
        """Create from a system info response."""
        rd = resp.rundeck
        mode = resp.executions.get("executionMode") or ""
        # Older servers only report the "active" flag
        if not mode and "active" in resp.executions:
            mode = "active" if resp.executions["active"] else "passive"
        return cls(
            version=rd.get("version", ""),
            build=rd.get("build", ""),
            node=rd.get("node", ""),
            base=rd.get("base", ""),
            api_version=int(rd.get("apiversion") or 0),
            server_uuid=rd.get("serverUUID", ""),
            execution_mode=mode,
        )
