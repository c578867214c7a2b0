"""
tokensale/core/crypto.py

Signed Config records.

A state file outside a chain host can be edited by anyone with
filesystem access. A ConfigStore holding a ConfigSigner signs the
canonical bytes of every Config it saves, and refuses to load a record
that another key signed or that was changed after signing.

    signer = ConfigSigner.generate()
    proof  = signer.sign_config(config.to_dict())
    # {"signer_public_key": "<64 hex>", "signature": "<base64url>"}

    ConfigSigner.verify_config(config_dict, **proof)  → bool, never raises
"""

import base64
import binascii
from pathlib import Path
from typing import Any, Dict

from cryptography.exceptions import InvalidSignature
from cryptography.hazmat.primitives.asymmetric.ed25519 import (
    Ed25519PrivateKey,
    Ed25519PublicKey,
)
from cryptography.hazmat.primitives.serialization import (
    Encoding,
    NoEncryption,
    PrivateFormat,
    PublicFormat,
    load_pem_private_key,
)

from tokensale.core.canonical import canonicalize


SIGNATURE_BYTES = 64


def _b64url(raw: bytes) -> str:
    return base64.urlsafe_b64encode(raw).rstrip(b"=").decode("ascii")


def _unb64url(text: str) -> bytes:
    return base64.urlsafe_b64decode(text + "=" * (-len(text) % 4))


class ConfigSigner:
    """Ed25519 key that signs and checks Config records."""

    def __init__(self, private_key: Ed25519PrivateKey) -> None:
        self._private_key = private_key
        self.public_key: str = (
            private_key.public_key()
            .public_bytes(Encoding.Raw, PublicFormat.Raw)
            .hex()
        )

    # ── Keys ──────────────────────────────────────────────────

    @classmethod
    def generate(cls) -> "ConfigSigner":
        return cls(Ed25519PrivateKey.generate())

    @classmethod
    def load(cls, path: Path) -> "ConfigSigner":
        """
        Load a PEM private key.

        Raises FileNotFoundError for a missing file and ValueError for
        anything that is not an unencrypted Ed25519 key.
        """
        path = Path(path)
        if not path.exists():
            raise FileNotFoundError(f"Key file not found: {path}")
        try:
            private_key = load_pem_private_key(path.read_bytes(), password=None)
        except (ValueError, TypeError) as exc:
            raise ValueError(f"Failed to load signing key from {path}: {exc}") from exc
        if not isinstance(private_key, Ed25519PrivateKey):
            raise ValueError(f"Key file {path} does not contain an Ed25519 private key")
        return cls(private_key)

    def save(self, path: Path) -> None:
        """Write the private key as unencrypted PKCS8 PEM."""
        path = Path(path)
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_bytes(
            self._private_key.private_bytes(
                encoding=             Encoding.PEM,
                format=               PrivateFormat.PKCS8,
                encryption_algorithm= NoEncryption(),
            )
        )

    # ── Records ───────────────────────────────────────────────

    def sign_config(self, config_dict: Dict[str, Any]) -> Dict[str, str]:
        signature = self._private_key.sign(canonicalize(config_dict))
        return {
            "signer_public_key": self.public_key,
            "signature":         _b64url(signature),
        }

    @staticmethod
    def verify_config(
        config_dict:       Dict[str, Any],
        signer_public_key: Any,
        signature:         Any,
    ) -> bool:
        """True only if signature is signer_public_key's over config_dict."""
        if not isinstance(signer_public_key, str) or len(signer_public_key) != 64:
            return False
        if not isinstance(signature, str):
            return False
        try:
            public_key = Ed25519PublicKey.from_public_bytes(bytes.fromhex(signer_public_key))
            raw = _unb64url(signature)
            signed_bytes = canonicalize(config_dict)
        except (ValueError, TypeError, binascii.Error):
            return False
        if len(raw) != SIGNATURE_BYTES:
            return False

        try:
            public_key.verify(raw, signed_bytes)
        except InvalidSignature:
            return False
        return True

    def __repr__(self) -> str:
        return f"ConfigSigner(public_key={self.public_key[:16]}...)"
