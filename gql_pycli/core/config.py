"""Endpoint configuration models.

Configuration discovery is left to the caller; these models validate an
already-located configuration (camelCase keys, as written in ``.gqrc``
files) and expose the defaults the core relies on.
"""

import json
import os
from pathlib import Path
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator, model_validator

from .errors import InvalidArgsError
from .headers import ApiKeyAuth, Auth, BasicAuth, BearerAuth
from .ir import RootKind

DEFAULT_INTROSPECTION_TTL = 3600.0  # seconds
DEFAULT_CACHE_DIR = Path.home() / ".gql" / "cache" / "introspection"


def default_cache_dir() -> Path:
    """Cache directory, overridable with ``GQL_CACHE_DIR``."""
    override = os.environ.get("GQL_CACHE_DIR")
    return Path(override).expanduser() if override else DEFAULT_CACHE_DIR


class _ConfigModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="forbid")


class CacheConfig(_ConfigModel):
    introspection_ttl: float | None = Field(default=None, alias="introspectionTTL", ge=0)


class HelpConfig(_ConfigModel):
    """Display tweaks; keys are field names or kind-scoped ('mutation.createUser')."""
    rename: dict[str, str] = Field(default_factory=dict)
    hide: list[str] = Field(default_factory=list)
    describe: dict[str, str] = Field(default_factory=dict)
    group_order: list[RootKind] = Field(default_factory=list, alias="groupOrder")
    prefer_kind_on_conflict: RootKind | None = Field(default=None, alias="preferKindOnConflict")

    @field_validator("group_order", mode="before")
    @classmethod
    def _lowercase_groups(cls, value):
        if isinstance(value, list):
            return [item.strip().lower() if isinstance(item, str) else item for item in value]
        return value

    @field_validator("prefer_kind_on_conflict", mode="before")
    @classmethod
    def _lowercase_kind(cls, value):
        return value.strip().lower() if isinstance(value, str) else value


class AuthConfig(_ConfigModel):
    """Credentials sent with every request to the endpoint.

    Examples:
        {"type": "bearer", "token": "..."}
        {"type": "basic", "username": "jess", "password": "..."}
        {"type": "apiKey", "token": "...", "header": "x-api-key"}
    """
    type: Literal["bearer", "basic", "apiKey"]
    token: str | None = None
    username: str | None = None
    password: str | None = None
    header: str = "x-api-key"

    @model_validator(mode="after")
    def _check_credentials(self) -> "AuthConfig":
        if self.type == "basic":
            if self.username is None or self.password is None:
                raise ValueError("basic auth requires username and password.")
        elif not self.token:
            raise ValueError(f"{self.type} auth requires a token.")
        return self

    def to_auth(self) -> Auth:
        if self.type == "bearer":
            return BearerAuth(self.token)
        if self.type == "basic":
            return BasicAuth(self.username, self.password)
        return ApiKeyAuth(self.token, header_name=self.header)


class EndpointConfig(_ConfigModel):
    """One GraphQL endpoint."""
    url: str
    headers: dict[str, str] = Field(default_factory=dict)
    auth: AuthConfig | None = None
    aliases: dict[str, str] = Field(default_factory=dict)
    help: HelpConfig = Field(default_factory=HelpConfig)
    cache: CacheConfig = Field(default_factory=CacheConfig)
    documents: list[str] = Field(default_factory=list)
    fragments: list[str] = Field(default_factory=list)

    @model_validator(mode="after")
    def _check_aliases(self) -> "EndpointConfig":
        for alias, target in self.aliases.items():
            if alias == target:
                raise ValueError(f'Alias "{alias}" cannot point to itself.')
            if target in self.aliases:
                raise ValueError(
                    f'Alias "{alias}" points to another alias "{target}"; '
                    "aliases must target operation names."
                )
        return self

    @property
    def introspection_ttl(self) -> float:
        if self.cache.introspection_ttl is None:
            return DEFAULT_INTROSPECTION_TTL
        return self.cache.introspection_ttl

    @property
    def has_documents(self) -> bool:
        return bool(self.documents or self.fragments)


class GqlConfig(_ConfigModel):
    """A set of named endpoints."""
    endpoints: dict[str, EndpointConfig] = Field(default_factory=dict)
    default_endpoint: str | None = Field(default=None, alias="defaultEndpoint")

    def resolve_endpoint(self, name: str | None = None) -> tuple[str, EndpointConfig]:
        """Look up an endpoint by name, falling back to the default one.

        Raises:
            InvalidArgsError: If no endpoint matches
        """
        name = name or self.default_endpoint
        if name is None and len(self.endpoints) == 1:
            name = next(iter(self.endpoints))
        if name is None:
            raise InvalidArgsError("No endpoint specified and no defaultEndpoint configured.")
        endpoint = self.endpoints.get(name)
        if endpoint is None:
            available = ", ".join(sorted(self.endpoints)) or "none"
            raise InvalidArgsError(f'Unknown endpoint "{name}". Available endpoints: {available}.')
        return name, endpoint


def load_config(path: str | Path) -> GqlConfig:
    """Read and validate a JSON configuration file.

    Raises:
        InvalidArgsError: If the file is missing, not JSON, or invalid
    """
    path = Path(path)
    try:
        raw = json.loads(path.read_text(encoding="utf-8"))
    except FileNotFoundError:
        raise InvalidArgsError(f"Config file {path} not found.") from None
    except json.JSONDecodeError as e:
        raise InvalidArgsError(f"Config file {path} is not valid JSON: {e}") from e

    try:
        return GqlConfig.model_validate(raw)
    except ValidationError as e:
        raise InvalidArgsError(f"Invalid config file {path}:\n{e}") from e
