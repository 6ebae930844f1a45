"""Typed operation dispatch requests.

Each operation is a closed OperationKind member with its own request model;
the request body is a discriminated union on ``op``.
"""

from enum import Enum
from typing import Annotated, Literal

from pydantic import BaseModel, Field


class OperationKind(str, Enum):
    PLUGINS_ALL = "plugins.all"
    PLUGINS_NAMES = "plugins.names"
    PLUGINS_GET = "plugins.get"
    PLUGINS_RELEASES = "plugins.releases"
    PLUGINS_LATEST_RELEASE = "plugins.latest_release"
    PLUGINS_COUNT = "plugins.count"
    RELEASES_GET = "releases.get"
    USERS_GET = "users.get"
    USERS_BY_USERNAME = "users.by_username"


class PluginsAllRequest(BaseModel):
    op: Literal[OperationKind.PLUGINS_ALL.value]


class PluginsNamesRequest(BaseModel):
    op: Literal[OperationKind.PLUGINS_NAMES.value]


class PluginsGetRequest(BaseModel):
    op: Literal[OperationKind.PLUGINS_GET.value]
    plugin_id: str


class PluginsReleasesRequest(BaseModel):
    op: Literal[OperationKind.PLUGINS_RELEASES.value]
    plugin_id: str


class PluginsLatestReleaseRequest(BaseModel):
    op: Literal[OperationKind.PLUGINS_LATEST_RELEASE.value]
    plugin_id: str


class PluginsCountRequest(BaseModel):
    op: Literal[OperationKind.PLUGINS_COUNT.value]


class ReleasesGetRequest(BaseModel):
    op: Literal[OperationKind.RELEASES_GET.value]
    release_id: str


class UsersGetRequest(BaseModel):
    op: Literal[OperationKind.USERS_GET.value]
    user_id: str


class UsersByUsernameRequest(BaseModel):
    op: Literal[OperationKind.USERS_BY_USERNAME.value]
    username: str


DispatchRequest = Annotated[
    PluginsAllRequest
    | PluginsNamesRequest
    | PluginsGetRequest
    | PluginsReleasesRequest
    | PluginsLatestReleaseRequest
    | PluginsCountRequest
    | ReleasesGetRequest
    | UsersGetRequest
    | UsersByUsernameRequest,
    Field(discriminator="op"),
]
