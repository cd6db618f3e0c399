#!/usr/bin/env -S python3 -B -u
"""
File-backed topology storage.

Keeps the last saved graph document under a fixed key in the storage
directory, the way the browser editor keeps it in local storage. Only the
editor's commit listeners and shell commands touch this module; the core
graph functions never do.
"""

import json
import os
import tempfile
from pathlib import Path
from typing import Any, Dict, Optional, Union

from .exceptions import StorageError
from .structured_logging import get_logger


STORAGE_KEY = 'network-topology-data'


class TopologyStorage:
    """Persisted graph document in a storage directory."""

    def __init__(self, directory: Union[str, Path], key: str = STORAGE_KEY):
        self.directory = Path(directory).expanduser()
        self.key = key
        self.logger = get_logger(__name__)

    @property
    def path(self) -> Path:
        return self.directory / f"{self.key}.json"

    def save(self, document: Dict[str, Any]) -> Path:
        """
        Write the document atomically.

        Raises:
            StorageError: If the directory or file cannot be written
        """
        try:
            self.directory.mkdir(parents=True, exist_ok=True)
            fd, tmp_path = tempfile.mkstemp(dir=str(self.directory), prefix=f".{self.key}.", suffix=".tmp")
            try:
                with os.fdopen(fd, 'w', encoding='utf-8') as f:
                    json.dump(document, f, indent=2, ensure_ascii=False)
                os.replace(tmp_path, self.path)
            except BaseException:
                if os.path.exists(tmp_path):
                    os.unlink(tmp_path)
                raise
        except OSError as e:
            raise StorageError(str(self.path), "save", cause=e)

        self.logger.debug("Saved topology", path=str(self.path), nodes=len(document.get('nodes', [])))
        return self.path

    def load(self) -> Optional[Any]:
        """
        Read the stored document.

        Returns:
            Parsed JSON value, or None if nothing is stored or the file is
            not valid JSON
        """
        if not self.path.exists():
            return None
        try:
            with open(self.path, 'r', encoding='utf-8') as f:
                return json.load(f)
        except json.JSONDecodeError as e:
            self.logger.warning(f"Stored topology is not valid JSON: {e}")
            return None
        except OSError as e:
            raise StorageError(str(self.path), "load", cause=e)

    def clear(self) -> bool:
        """Delete the stored document; returns False if nothing was stored."""
        try:
            self.path.unlink()
        except FileNotFoundError:
            return False
        except OSError as e:
            raise StorageError(str(self.path), "clear", cause=e)
        return True
