from __future__ import annotations

import json
import os
import stat
import tempfile
from pathlib import Path
from typing import Union

from loguru import logger

from .credential import Credential
from .errors import CorruptStore, CredentialNotFound, PersistFailed


DEFAULT_TOKEN_FILE = "auth.json"


class CredentialStore:
    """Single-record credential file.

    Not safe for several processes writing at once: there is no file lock,
    the last writer wins.
    """

    def __init__(self, path: Union[str, Path] = DEFAULT_TOKEN_FILE) -> None:
        self._path = Path(path)

    @property
    def path(self) -> Path:
        return self._path

    def exists(self) -> bool:
        return self._path.exists()

    def load(self) -> Credential:
        try:
            raw = self._path.read_text(encoding="utf-8")
        except FileNotFoundError as e:
            raise CredentialNotFound(f"No saved credential at {self._path}") from e
        except OSError as e:
            raise CorruptStore(f"Unable to read {self._path}: {e}") from e

        try:
            data = json.loads(raw)
        except json.JSONDecodeError as e:
            raise CorruptStore(f"{self._path} is not valid JSON: {e}") from e
        if not isinstance(data, dict):
            raise CorruptStore(f"{self._path} does not hold a JSON object")

        try:
            return Credential.from_dict(data)
        except (KeyError, TypeError, ValueError) as e:
            raise CorruptStore(f"{self._path} is not a valid credential: {e!r}") from e

    def write(self, credential: Credential) -> None:
        """Replace the saved record, raising PersistFailed on I/O errors.

        The record is written to a temp file next to the target and renamed
        over it, so a crash mid-write never leaves a half-written file behind.
        """
        directory = self._path.parent
        tmp_path = None
        try:
            directory.mkdir(parents=True, exist_ok=True)
            fd, tmp_path = tempfile.mkstemp(prefix=f".{self._path.name}.", suffix=".tmp", dir=directory)
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                json.dump(credential.to_dict(), f, indent=2)
                f.write("\n")
            os.chmod(tmp_path, stat.S_IRUSR | stat.S_IWUSR)  # 0600
            os.replace(tmp_path, self._path)
        except OSError as e:
            if tmp_path is not None:
                try:
                    os.remove(tmp_path)
                except OSError:
                    pass
            raise PersistFailed(f"Unable to save authentication tokens to {self._path}: {e}") from e

    def save(self, credential: Credential) -> bool:
        """Best-effort write: logs PersistFailed and returns False instead of raising."""
        try:
            self.write(credential)
        except PersistFailed as e:
            logger.error("{}", e)
            return False

        logger.info("Saved authentication tokens to {}", self._path)
        return True
