"""Login payload normalization across current and historical client shapes.

Clients have sent credentials in several ways over the years:

- flat JSON body: ``{"email": ..., "password": ...}``
- nested object: ``{"auth": {"email": ..., "password": ...}}``
- nested JSON string: ``{"auth": "{\\"email\\": ...}"}``
- a raw JSON text body sent without a JSON content type
- Portuguese / short field names: ``login``, ``usuario``, ``senha``, ``pass``

classify_body() maps the decoded request body onto one of the shapes below;
credentials_source() picks the mapping that holds the credentials and
normalize_credentials() extracts the canonical pair. None of these raise.
"""

from __future__ import annotations

import json
from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any, Union

# A nested `auth` value is only trusted when it has at least one of these keys.
AUTH_PAYLOAD_FIELDS = frozenset(
    {
        "email",
        "login",
        "usuario",
        "password",
        "senha",
        "pass",
        "name",
        "cnpj_access",
        "invite_token",
    }
)

EMAIL_KEYS = ("email", "login", "usuario")
PASSWORD_KEYS = ("password", "senha", "pass")
DEPRECATED_KEYS = ("login", "usuario", "senha", "pass")


@dataclass(frozen=True)
class EmptyBody:
    pass


@dataclass(frozen=True)
class TextBody:
    text: str


@dataclass(frozen=True)
class FlatBody:
    fields: Mapping[str, Any]


@dataclass(frozen=True)
class NestedAuthObject:
    auth: Mapping[str, Any]
    body: Mapping[str, Any]


@dataclass(frozen=True)
class NestedAuthString:
    raw_auth: str
    body: Mapping[str, Any]


PayloadShape = Union[EmptyBody, TextBody, FlatBody, NestedAuthObject, NestedAuthString]


@dataclass(frozen=True)
class NormalizedCredentials:
    email: str = ""
    password: str = ""
    deprecated_keys: list[str] = field(default_factory=list)


def is_auth_payload_object(value: object) -> bool:
    """True for a non-empty mapping with at least one known credential field."""
    if not isinstance(value, Mapping) or not value:
        return False
    return any(key in AUTH_PAYLOAD_FIELDS for key in value.keys())


def _decode_text(raw: str | bytes | bytearray) -> str:
    if isinstance(raw, (bytes, bytearray)):
        return bytes(raw).decode("utf-8", errors="replace")
    return raw


def _loads_mapping(text: str) -> Mapping[str, Any] | None:
    try:
        parsed = json.loads(text)
    except (ValueError, TypeError, RecursionError):
        return None
    return parsed if isinstance(parsed, Mapping) else None


def classify_body(body: object) -> PayloadShape:
    """Tag a decoded request body with the shape it arrived in."""
    if body is None:
        return EmptyBody()
    if isinstance(body, (str, bytes, bytearray)):
        text = _decode_text(body)
        return TextBody(text) if text.strip() else EmptyBody()
    if not isinstance(body, Mapping):
        return EmptyBody()
    raw_auth = body.get("auth")
    if isinstance(raw_auth, (str, bytes, bytearray)):
        return NestedAuthString(_decode_text(raw_auth), body)
    if is_auth_payload_object(raw_auth):
        return NestedAuthObject(raw_auth, body)
    if not body:
        return EmptyBody()
    return FlatBody(body)


def credentials_source(shape: PayloadShape) -> Mapping[str, Any]:
    """Return the mapping the credentials should be read from (possibly empty)."""
    if isinstance(shape, NestedAuthObject):
        return shape.auth
    if isinstance(shape, NestedAuthString):
        parsed = _loads_mapping(shape.raw_auth)
        if is_auth_payload_object(parsed):
            return parsed
        # Unparseable or unrelated auth string: fall back to the flat body.
        return shape.body
    if isinstance(shape, FlatBody):
        return shape.fields
    if isinstance(shape, TextBody):
        parsed = _loads_mapping(shape.text)
        if parsed is None:
            return {}
        # A decoded mapping never classifies as TextBody, so this recurses once at most.
        return credentials_source(classify_body(parsed))
    return {}


def _first_present(source: Mapping[str, Any], keys: tuple[str, ...]) -> Any:
    for key in keys:
        value = source.get(key)
        if value is not None:
            return value
    return ""


def _as_text(value: Any) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (bytes, bytearray)):
        return _decode_text(value)
    return str(value)


def normalize_credentials(source: Mapping[str, Any] | None) -> NormalizedCredentials:
    """Extract canonical email (trimmed, lowercased) and password (untouched) from a mapping."""
    if not isinstance(source, Mapping):
        return NormalizedCredentials()
    try:
        email = _as_text(_first_present(source, EMAIL_KEYS)).strip().lower()
        password = _as_text(_first_present(source, PASSWORD_KEYS))
    except Exception:
        return NormalizedCredentials()
    deprecated = [key for key in DEPRECATED_KEYS if key in source]
    return NormalizedCredentials(email=email, password=password, deprecated_keys=deprecated)


def extract_credentials(body: object) -> NormalizedCredentials:
    """Full pipeline: classify the body, pick the source, normalize."""
    return normalize_credentials(credentials_source(classify_body(body)))


def is_body_empty(body: object) -> bool:
    if body is None:
        return True
    if isinstance(body, (str, bytes, bytearray)):
        return len(_decode_text(body).strip()) == 0
    if isinstance(body, Mapping):
        return len(body) == 0
    return False
