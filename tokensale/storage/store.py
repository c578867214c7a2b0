"""
Key-value storage and the Config singleton.

Layers, bottom up:

    MemoryStorage / FileStorage   raw bytes → bytes
    TransactionalStorage          buffers writes, commit() or drop
    ConfigStore                   the one Config record under b"config"

The contract only ever sees a Storage; the host decides whether it is
transactional and when to commit.
"""

import base64
import json
import logging
import os
import warnings
from pathlib import Path
from typing import Dict, Optional, Protocol

from tokensale.core.canonical import canonicalize
from tokensale.core.crypto import ConfigSigner
from tokensale.core.exceptions import (
    ConfigNotFoundError,
    StorageCorruptionError,
    StorageError,
)
from tokensale.core.models import CONFIG_KEY, Config


logger = logging.getLogger(__name__)


class Storage(Protocol):
    def get(self, key: bytes) -> Optional[bytes]: ...

    def set(self, key: bytes, value: bytes) -> None: ...

    def remove(self, key: bytes) -> None: ...


class MemoryStorage:
    """Dict-backed storage."""

    def __init__(self, data: Optional[Dict[bytes, bytes]] = None):
        self._data: Dict[bytes, bytes] = dict(data or {})

    def get(self, key: bytes) -> Optional[bytes]:
        return self._data.get(key)

    def set(self, key: bytes, value: bytes) -> None:
        self._data[key] = value

    def remove(self, key: bytes) -> None:
        self._data.pop(key, None)

    def items(self) -> Dict[bytes, bytes]:
        return dict(self._data)


class FileStorage(MemoryStorage):
    """
    Storage persisted as one JSON file: {"<key>": "<base64 value>"}.

    Every set() or remove() rewrites the whole file atomically (temp file,
    fsync, os.replace), so a crash leaves either the old or the new file.
    """

    def __init__(self, path: Path):
        self.path = Path(path)
        super().__init__()
        self._load()

    def set(self, key: bytes, value: bytes) -> None:
        super().set(key, value)
        self._flush()

    def remove(self, key: bytes) -> None:
        super().remove(key)
        self._flush()

    def _temp_path(self) -> Path:
        return self.path.with_suffix(self.path.suffix + ".tmp")

    def _load(self) -> None:
        temp_path = self._temp_path()
        if temp_path.exists():
            warnings.warn(
                f"FileStorage: discarding interrupted write {temp_path}",
                RuntimeWarning,
                stacklevel=3,
            )
            temp_path.unlink()

        if not self.path.exists():
            return

        try:
            with open(self.path, "r", encoding="utf-8") as f:
                raw = json.load(f)
            if not isinstance(raw, dict):
                raise ValueError("top level must be an object")
            for key, value in raw.items():
                self._data[key.encode("utf-8")] = base64.b64decode(value, validate=True)
        except (ValueError, TypeError) as exc:
            raise StorageCorruptionError(
                f"State file {self.path} is not valid: {exc}"
            ) from exc

    def _flush(self) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        temp_path = self._temp_path()
        encoded = {
            key.decode("utf-8"): base64.b64encode(value).decode("ascii")
            for key, value in sorted(self._data.items())
        }
        try:
            with open(temp_path, "w", encoding="utf-8") as f:
                json.dump(encoded, f, indent=2)
                f.write("\n")
                f.flush()
                os.fsync(f.fileno())
            os.replace(temp_path, self.path)
            logger.debug("Wrote %d keys to %s", len(encoded), self.path)
        except OSError as exc:
            if temp_path.exists():
                temp_path.unlink()
            raise StorageError(f"Failed to write state file {self.path}: {exc}") from exc


class TransactionalStorage:
    """
    Write buffer over another storage.

    Reads see the invocation's own writes. Nothing reaches the base
    storage until commit(); dropping the object discards everything.
    """

    _DELETED = object()

    def __init__(self, base: Storage):
        self.base = base
        self._pending: Dict[bytes, object] = {}

    def get(self, key: bytes) -> Optional[bytes]:
        if key in self._pending:
            value = self._pending[key]
            return None if value is self._DELETED else value
        return self.base.get(key)

    def set(self, key: bytes, value: bytes) -> None:
        self._pending[key] = value

    def remove(self, key: bytes) -> None:
        self._pending[key] = self._DELETED

    @property
    def dirty(self) -> bool:
        return bool(self._pending)

    def commit(self) -> None:
        for key, value in self._pending.items():
            if value is self._DELETED:
                self.base.remove(key)
            else:
                self.base.set(key, value)
        self._pending.clear()

    def rollback(self) -> None:
        self._pending.clear()


class ConfigStore:
    """
    The Config singleton.

    Record layout (canonical JSON):

        {"config": {...}}                                  unsigned
        {"config": {...}, "signer_public_key": "...",
         "signature": "..."}                               signed

    With a signer, save() signs the canonical bytes of the config
    object and load() refuses any record that is unsigned, signed by
    another key, or whose signature does not verify.
    """

    def __init__(
        self,
        storage: Storage,
        signer: Optional[ConfigSigner] = None,
        key: bytes = CONFIG_KEY,
    ):
        self.storage = storage
        self.signer = signer
        self.key = key

    def exists(self) -> bool:
        return self.storage.get(self.key) is not None

    def may_load(self) -> Optional[Config]:
        raw = self.storage.get(self.key)
        if raw is None:
            return None
        return self._decode(raw)

    def load(self) -> Config:
        config = self.may_load()
        if config is None:
            raise ConfigNotFoundError("Contract has not been instantiated")
        return config

    def save(self, config: Config) -> None:
        config_dict = config.to_dict()
        record = {"config": config_dict}
        if self.signer is not None:
            record.update(self.signer.sign_config(config_dict))
        self.storage.set(self.key, canonicalize(record))

    def _decode(self, raw: bytes) -> Config:
        try:
            record = json.loads(raw.decode("utf-8"))
            config_dict = record["config"]
        except (UnicodeDecodeError, ValueError, KeyError, TypeError) as exc:
            raise StorageCorruptionError(f"Config record failed to decode: {exc}") from exc

        if self.signer is not None:
            self._verify(record, config_dict)

        try:
            return Config.from_dict(config_dict)
        except Exception as exc:
            raise StorageCorruptionError(f"Config record is malformed: {exc}") from exc

    def _verify(self, record: dict, config_dict: dict) -> None:
        signer_public_key = record.get("signer_public_key")
        if signer_public_key != self.signer.public_key:
            raise StorageCorruptionError(
                "Config record is not signed by the configured key",
                {"signer": signer_public_key},
            )
        if not ConfigSigner.verify_config(
            config_dict, signer_public_key, record.get("signature")
        ):
            raise StorageCorruptionError("Config record signature is invalid")
