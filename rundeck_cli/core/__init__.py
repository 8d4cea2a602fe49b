"""
Core layer - Raw types and HTTP client.

This layer provides:
- Typed dataclasses matching the Rundeck API, tagged with their supported API versions
- Low-level HTTP client with auth, version gating and error handling
"""

from rundeck_cli.core.client import (
    APIClient,
    CLIError,
    DecodeError,
    TransportError,
    ValidationError,
    VersionError,
)
from rundeck_cli.core.types import (
    ACLPolicies,
    ACLPolicy,
    ACLResponse,
    ListUsersResponse,
    SystemInfo,
    SystemInfoResponse,
    User,
    UserInfoUpdate,
    UserProfileResponse,
    Users,
    VersionedResponse,
)

__all__ = [
    "ACLPolicies",
    "ACLPolicy",
    "ACLResponse",
    "APIClient",
    "CLIError",
    "DecodeError",
    "ListUsersResponse",
    "SystemInfo",
    "SystemInfoResponse",
    "TransportError",
    "User",
    "UserInfoUpdate",
    "UserProfileResponse",
    "Users",
    "ValidationError",
    "VersionError",
    "VersionedResponse",
]
