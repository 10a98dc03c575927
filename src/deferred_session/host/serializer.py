"""Payload serialization for stored host sessions.

A session's raw data mapping is wrapped in a small envelope carrying a
format version and a SHA-256 checksum of the data, then encoded as JSON or
YAML.

Classes
-------
- PayloadFormatError  — raised for undecodable or unsupported payloads
- PayloadSerializer   — encode/decode raw session data
"""
from __future__ import annotations

import hashlib
import json
from typing import Any, Literal

import yaml

FORMAT_VERSION = "1"
_SUPPORTED_FORMAT_VERSIONS: frozenset[str] = frozenset({FORMAT_VERSION})

PayloadFormat = Literal["json", "yaml"]


class PayloadFormatError(ValueError):
    """Raised when a stored payload cannot be decoded into session data."""


def _check_keys(value: Any, path: str = "data") -> None:
    """Raise ``PayloadFormatError`` for any mapping key that is not a str."""
    if isinstance(value, dict):
        for key, item in value.items():
            if not isinstance(key, str):
                raise PayloadFormatError(
                    f"Session data key {key!r} at {path} is {type(key).__name__}, not str."
                )
            _check_keys(item, f"{path}.{key}")
    elif isinstance(value, (list, tuple)):
        for index, item in enumerate(value):
            _check_keys(item, f"{path}[{index}]")


def _checksum(data: dict[str, Any]) -> str:
    canonical = json.dumps(data, sort_keys=True, separators=(",", ":"), default=str)
    return hashlib.sha256(canonical.encode("utf-8")).hexdigest()


class PayloadSerializer:
    """Encode and decode a host session's raw data mapping.

    Parameters
    ----------
    fmt:
        ``"json"`` (default) or ``"yaml"``.
    validate_checksum:
        When True (default), ``loads`` rejects payloads whose embedded
        checksum does not match their data.
    """

    def __init__(self, fmt: PayloadFormat = "json", validate_checksum: bool = True) -> None:
        if fmt not in ("json", "yaml"):
            raise ValueError(f"Unsupported payload format {fmt!r}; expected 'json' or 'yaml'.")
        self.fmt = fmt
        self.validate_checksum = validate_checksum

    def dumps(self, data: dict[str, Any]) -> str:
        """Return ``data`` wrapped in a versioned envelope and encoded.

        Parameters
        ----------
        data:
            The host's raw data mapping.  Values must be plain str, int,
            float, bool, None, lists or nested mappings, and every mapping
            key must be a str.

        Returns
        -------
        str
            Encoded document.

        Raises
        ------
        PayloadFormatError
            If a mapping key is not a str or a value cannot be encoded.
        """
        _check_keys(data)
        envelope = {
            "format_version": FORMAT_VERSION,
            "checksum": _checksum(data),
            "data": data,
        }
        try:
            if self.fmt == "yaml":
                return yaml.safe_dump(
                    envelope, default_flow_style=False, allow_unicode=True, sort_keys=True
                )
            return json.dumps(envelope, indent=2)
        except (TypeError, ValueError, yaml.YAMLError) as exc:
            raise PayloadFormatError(f"Session data cannot be encoded: {exc}") from exc

    def loads(self, raw: str) -> dict[str, Any]:
        """Decode a document produced by ``dumps``.

        Raises
        ------
        PayloadFormatError
            If the document is malformed, uses an unsupported format
            version, carries non-mapping data, or fails the checksum.
        """
        try:
            if self.fmt == "yaml":
                envelope = yaml.safe_load(raw)
            else:
                envelope = json.loads(raw)
        except (json.JSONDecodeError, yaml.YAMLError) as exc:
            raise PayloadFormatError(f"Malformed session payload: {exc}") from exc

        if not isinstance(envelope, dict):
            raise PayloadFormatError("Session payload is not a mapping.")

        version = str(envelope.get("format_version", ""))
        if version not in _SUPPORTED_FORMAT_VERSIONS:
            supported = ", ".join(sorted(_SUPPORTED_FORMAT_VERSIONS))
            raise PayloadFormatError(
                f"Unsupported payload format version {version!r}. Supported versions: {supported}"
            )

        data = envelope.get("data")
        if not isinstance(data, dict):
            raise PayloadFormatError("Session payload data is not a mapping.")

        stored = envelope.get("checksum")
        if self.validate_checksum and stored:
            computed = _checksum(data)
            if stored != computed:
                raise PayloadFormatError(
                    f"Checksum mismatch: stored={stored!r} computed={computed!r}"
                )
        return data
