"""
Rundeck SDK - High-level client with nice ergonomics.

This layer provides a clean, typed interface for Rundeck API operations.
Every operation gates on the configured API version, issues the request,
decodes the JSON body and translates it into a domain model.
Built on top of the core APIClient.
"""

import builtins
import json
import logging
import urllib.parse
from collections.abc import Callable
from typing import Any, TypeVar

from rundeck_cli.core.client import APIClient, DecodeError, ValidationError
from rundeck_cli.core.types import (
    ACLPolicies,
    ACLResponse,
    ListUsersResponse,
    SystemInfo,
    SystemInfoResponse,
    User,
    UserInfoUpdate,
    UserProfileResponse,
)

T = TypeVar("T")

# Login value the CLI uses when --login was not given
NIL_LOGIN = "nil"

logger = logging.getLogger("rundeck_cli.sdk")


def decode(raw: bytes, parser: Callable[[Any], T]) -> T:
    """
    Decode a JSON body and build a model from it.

    Raises:
        DecodeError: If the body is not JSON or does not match the model

    """
    try:
        return parser(json.loads(raw))
    except (ValueError, KeyError, TypeError, AttributeError) as e:
        raise DecodeError("error decoding response", e) from e


class RundeckClient:
    """
    High-level Rundeck API client with typed methods.

    Example:
        client = RundeckClient(base_url="https://rundeck.example.com", api_version=27)

        users = client.users.list()
        me = client.users.current()
        client.users.modify("jdoe", UserInfoUpdate(email="jdoe@example.com"))

        policies = client.acl.list_system()

    """

    def __init__(
        self,
        token: str | None = None,
        base_url: str | None = None,
        api_version: int | str | None = None,
        timeout: int | None = None,
    ):
        """
        Initialize the Rundeck client.

        Args:
            token: Rundeck API token (or RUNDECK_TOKEN env var)
            base_url: Server base URL (or RUNDECK_URL env var)
            api_version: API version to speak (or RUNDECK_API_VERSION env var)
            timeout: Request timeout in seconds (or RUNDECK_TIMEOUT env var)

        """
        self._client = APIClient(
            token=token,
            base_url=base_url,
            api_version=api_version,
            timeout=timeout,
        )

        # Sub-clients for different domains
        self.users = UserOperations(self._client)
        self.acl = ACLOperations(self._client)
        self.system = SystemOperations(self._client)

    @property
    def api_version(self) -> int:
        """Get the configured API version."""
        return self._client.api_version

    @property
    def base_url(self) -> str:
        """Get the server base URL."""
        return self._client.base_url


# =============================================================================
# User Operations
# =============================================================================


def _users_from_list(data: Any) -> list[User]:
    return [User.from_response(u) for u in ListUsersResponse.from_list(data).users]


def _user_from_profile(data: Any) -> User:
    return User.from_profile(UserProfileResponse.from_dict(data))


class UserOperations:
    """Operations for listing and managing users."""

    def __init__(self, client: APIClient):
        self._client = client

    def list(self) -> builtins.list[User]:
        """
        List all users.

        Timestamps and token counts are only sent by API v27 and later; on
        older servers they are left as None and 0.

        Returns:
            Users in server order

        """
        self._client.check_required_api_version(ListUsersResponse)
        raw = self._client.get("user/list")
        return decode(raw, _users_from_list)

    def current(self) -> User:
        """
        Get the profile of the authenticated user.

        Returns:
            The current User

        """
        self._client.check_required_api_version(UserProfileResponse)
        raw = self._client.get("user/info")
        return decode(raw, _user_from_profile)

    def get(self, login: str) -> User:
        """
        Get the profile of another user. Requires admin privileges.

        Args:
            login: The user login

        Returns:
            The named User

        """
        self._client.check_required_api_version(UserProfileResponse)
        if not login or login == NIL_LOGIN:
            raise ValidationError("must provide a login")
        raw = self._client.get(f"user/info/{urllib.parse.quote(login, safe='')}")
        return decode(raw, _user_from_profile)

    def modify(self, login: str | None, update: UserInfoUpdate) -> User:
        """
        Modify a user profile.

        The authenticated user's own profile is updated through user/info;
        any other login goes through the admin-scoped user/info/{login}.

        Args:
            login: The login of the user to modify
            update: Only the fields to change

        Returns:
            The updated User

        Raises:
            ValidationError: If login is missing or there is nothing to update

        """
        self._client.check_required_api_version(UserProfileResponse)
        if not login or login == NIL_LOGIN or update.is_empty:
            raise ValidationError(
                "must provide login and at least one field to update",
                details={"login": login, "fields": update.to_dict()},
            )

        current = self.current()
        if current.login == login:
            path = "user/info"
        else:
            path = f"user/info/{urllib.parse.quote(login, safe='')}"
        logger.debug("Updating profile of %s via %s", login, path)

        raw = self._client.post(path, update.to_dict())
        return decode(raw, _user_from_profile)


# =============================================================================
# ACL Operations
# =============================================================================


class ACLOperations:
    """Operations for ACL policies."""

    def __init__(self, client: APIClient):
        self._client = client

    def list_system(self) -> ACLPolicies:
        """
        List the system ACL policies.

        Returns:
            ACLPolicies with the directory path and its policy files

        """
        self._client.check_required_api_version(ACLResponse)
        raw = self._client.get("system/acl/")
        return decode(raw, lambda data: ACLPolicies.from_response(ACLResponse.from_dict(data)))


# =============================================================================
# System Operations
# =============================================================================


class SystemOperations:
    """Operations for server information."""

    def __init__(self, client: APIClient):
        self._client = client

    def info(self) -> SystemInfo:
        """
        Get information about the Rundeck server.

        Returns:
            SystemInfo including the server's own API version

        """
        self._client.check_required_api_version(SystemInfoResponse)
        raw = self._client.get("system/info")
        return decode(raw, lambda data: SystemInfo.from_response(SystemInfoResponse.from_dict(data)))
