"""Core primitives for dssdeploy.

This module provides the small utilities shared by every deployment step:
- YAML/JSON loading with consistent encoding
- bytes32 encoding of ASCII symbols (collateral ilks, registry names, file keys)
- Address helpers (zero address, presence check, deterministic derivation)
- Path resolution relative to the repository root

Design principles:
- Pure functions where possible
- No global mutable state
- Type annotations throughout
"""

from __future__ import annotations

import hashlib
import json
import pathlib
from typing import Any, Optional

import yaml

# Repository root, computed once at module load
REPO_ROOT = pathlib.Path(__file__).resolve().parents[1]

ZERO_ADDRESS = "0x" + "00" * 20


def sha256_bytes(data: bytes) -> str:
    """Compute SHA-256 hash of bytes, returning lowercase hex string."""
    return hashlib.sha256(data).hexdigest()


def load_yaml(path: pathlib.Path) -> Any:
    """Load YAML file with UTF-8 encoding."""
    return yaml.safe_load(pathlib.Path(path).read_text(encoding="utf-8"))


def load_json(path: pathlib.Path) -> Any:
    """Load JSON file with UTF-8 encoding."""
    return json.loads(pathlib.Path(path).read_text(encoding="utf-8"))


def load_document(path: pathlib.Path) -> Any:
    """Load a JSON or YAML document, chosen by file extension.

    ``.yaml``/``.yml`` files go through PyYAML; everything else is read as JSON.
    """
    p = pathlib.Path(path)
    if p.suffix.lower() in (".yaml", ".yml"):
        return load_yaml(p)
    return load_json(p)


def to_bytes32(text: str) -> bytes:
    """Encode an ASCII symbol as a right-padded 32-byte value.

    This is how short names ("ETH-A", "spot", "Vat") travel as ``bytes32``
    contract arguments.
    """
    raw = text.encode("ascii")
    if len(raw) > 32:
        raise ValueError(f"Symbol longer than 32 bytes: {text!r}")
    return raw.ljust(32, b"\x00")


def from_bytes32(value: bytes) -> str:
    """Decode a right-padded bytes32 value back to its ASCII symbol."""
    return bytes(value).rstrip(b"\x00").decode("ascii")


def is_present(address: Optional[str]) -> bool:
    """Presence check used for table entries and descriptors.

    Only emptiness is checked: no checksum or format validation.
    """
    return bool(address) and address != ZERO_ADDRESS


def derive_address(sender: str, nonce: int) -> str:
    """Derive a deterministic contract address from sender and nonce.

    Used by the in-memory host; real hosts report the address the chain
    assigned.
    """
    digest = sha256_bytes(f"{sender.lower()}:{nonce}".encode("utf-8"))
    return "0x" + digest[-40:]


def resolve_path(
    relative: str,
    base: Optional[pathlib.Path] = None,
    repo_root: pathlib.Path = REPO_ROOT,
) -> pathlib.Path:
    """Resolve a path relative to base or repo root.

    Resolution order:
    1. If absolute, return as-is
    2. If base provided and path exists relative to base, use that
    3. If it exists relative to the working directory, use that
    4. Fall back to repo root
    """
    p = pathlib.Path(relative).expanduser()
    if p.is_absolute():
        return p

    if base is not None:
        candidate = pathlib.Path(base) / p
        if candidate.exists():
            return candidate

    if p.exists():
        return p

    return repo_root / p
