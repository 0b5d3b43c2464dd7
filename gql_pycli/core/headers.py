"""Request header construction.

Headers come in layers (endpoint config, authentication, command-line
directives) merged case-insensitively in order, so later layers override
earlier ones. Authentication handlers follow the ``Auth`` protocol and
can be passed wherever a layer is accepted.

Example:
    built = build_headers([
        HeaderLayer(headers=config.headers),
        BearerAuth(token),
        HeaderLayer(directives=[parse_header_directive("X-Trace: 1")]),
    ])
"""

import base64
import re
from dataclasses import dataclass, field
from typing import Protocol, runtime_checkable

from .errors import InvalidArgsError

REDACTED_TEXT = "***REDACTED***"

_SENSITIVE_PATTERNS = [
    re.compile(r"authorization", re.IGNORECASE),
    re.compile(r"authentication", re.IGNORECASE),
    re.compile(r"api[-_]?key", re.IGNORECASE),
    re.compile(r"token", re.IGNORECASE),
    re.compile(r"secret", re.IGNORECASE),
    re.compile(r"^cookie$", re.IGNORECASE),
]


class HeaderParseError(InvalidArgsError):
    """A header directive could not be parsed."""


@runtime_checkable
class Auth(Protocol):
    """Protocol for authentication handlers."""

    def get_headers(self) -> dict[str, str]:
        """Return headers to include in requests."""
        ...


class BearerAuth:
    """``Authorization: Bearer <token>``"""

    def __init__(self, token: str):
        self.token = token

    def get_headers(self) -> dict[str, str]:
        return {"Authorization": f"Bearer {self.token}"}


class BasicAuth:
    """HTTP Basic authentication."""

    def __init__(self, username: str, password: str):
        self.username = username
        self.password = password

    def get_headers(self) -> dict[str, str]:
        encoded = base64.b64encode(f"{self.username}:{self.password}".encode()).decode()
        return {"Authorization": f"Basic {encoded}"}


class ApiKeyAuth:
    """API key sent in a custom header (default ``x-api-key``)."""

    def __init__(self, api_key: str, header_name: str = "x-api-key"):
        self.api_key = api_key
        self.header_name = header_name

    def get_headers(self) -> dict[str, str]:
        return {self.header_name: self.api_key}


@dataclass
class HeaderDirective:
    """Set or remove one header."""
    name: str
    value: str | None = None

    @property
    def removes(self) -> bool:
        return self.value is None


@dataclass
class HeaderLayer:
    """Plain headers, then directives, applied in that order."""
    headers: dict[str, str | None] = field(default_factory=dict)
    directives: list[HeaderDirective] = field(default_factory=list)


@dataclass
class BuiltHeaders:
    headers: dict[str, str]
    redacted: dict[str, str]


def parse_header_directive(raw: str) -> HeaderDirective:
    """Parse ``Key: Value`` or ``Key=Value``; an empty value removes the header.

    Raises:
        HeaderParseError: If there is no delimiter or no name
    """
    if not raw or not raw.strip():
        raise HeaderParseError("Header entries must be non-empty strings.")

    positions = [pos for pos in (raw.find(":"), raw.find("=")) if pos != -1]
    if not positions:
        raise HeaderParseError(f'Invalid header "{raw}". Use "Key: Value" or "Key=Value" syntax.')

    delimiter = min(positions)
    name = raw[:delimiter].strip()
    value = raw[delimiter + 1:].strip()
    if not name:
        raise HeaderParseError(f'Invalid header "{raw}". Header name is required.')
    return HeaderDirective(name=name, value=value or None)


def build_headers(layers: list[HeaderLayer | Auth]) -> BuiltHeaders:
    """Merge header layers in order.

    Names compare case-insensitively; the spelling of the last write is kept.

    Args:
        layers: HeaderLayer instances or Auth handlers

    Returns:
        BuiltHeaders with the merged headers and a redacted copy for display
    """
    merged: dict[str, tuple[str, str]] = {}

    for layer in layers:
        if isinstance(layer, HeaderLayer):
            for name, value in layer.headers.items():
                if isinstance(value, str):
                    merged[_canonical(name)] = (name.strip(), value)
            for directive in layer.directives:
                if not directive.name:
                    continue
                if directive.removes:
                    merged.pop(_canonical(directive.name), None)
                else:
                    merged[_canonical(directive.name)] = (directive.name.strip(), directive.value)
        else:
            for name, value in layer.get_headers().items():
                merged[_canonical(name)] = (name.strip(), value)

    headers = {display: value for display, value in merged.values()}
    return BuiltHeaders(headers=headers, redacted=redact_headers(headers))


def should_redact(name: str) -> bool:
    return any(pattern.search(name) for pattern in _SENSITIVE_PATTERNS)


def redact_headers(headers: dict[str, str]) -> dict[str, str]:
    """Copy of ``headers`` with sensitive values masked."""
    return {
        name: REDACTED_TEXT if should_redact(name) else value
        for name, value in headers.items()
    }


def _canonical(name: str) -> str:
    return name.strip().lower()
