"""YAML-backed registry persistence.

The whole registry is read and written as one document. Mutations go
through :meth:`RegistryStore.mutate`, which holds a single lock across
the load, the caller's validation and change, and the save, so two
concurrent commands cannot overwrite each other's changes.
"""

import asyncio
import os
import tempfile
from contextlib import asynccontextmanager
from pathlib import Path
from typing import Any, AsyncIterator, Dict, Optional

import structlog
import yaml
from pydantic import ValidationError

from ..exceptions import PersistenceError
from .models import Registry
from .publisher import GitPublisher

logger = structlog.get_logger()


class RegistryStore:
    """Load and save the registry file."""

    def __init__(self, path: Path, publisher: Optional[GitPublisher] = None) -> None:
        self.path = Path(path)
        self.publisher = publisher
        self._lock = asyncio.Lock()

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    async def load(self) -> Registry:
        """Return the current registry snapshot.

        A missing file is a first run: the default registry is written
        and returned.
        """
        if not self.path.exists():
            logger.info(
                "Registry file not found, creating default", path=str(self.path)
            )
            registry = Registry()
            await self.save(registry)
            return registry
        return self._read()

    async def save(self, registry: Registry) -> None:
        """Write the whole registry, then publish it if configured."""
        self._write(registry)
        logger.info(
            "Registry saved",
            path=str(self.path),
            projects=len(registry.projects),
            profiles=len(registry.profiles),
        )
        if self.publisher is not None:
            await self.publisher.publish(self.path)

    @asynccontextmanager
    async def mutate(self) -> AsyncIterator[Registry]:
        """Serialize a read-validate-mutate-persist cycle.

        The registry yielded is saved when the block exits normally. If
        the block raises, nothing is written.
        """
        async with self._lock:
            # first run: the block's own save creates the file
            registry = self._read() if self.path.exists() else Registry()
            yield registry
            await self.save(registry)

    # ------------------------------------------------------------------
    # File handling
    # ------------------------------------------------------------------

    def _read(self) -> Registry:
        try:
            text = self.path.read_text(encoding="utf-8")
        except OSError as e:
            raise PersistenceError(f"Could not read registry {self.path}: {e}") from e

        try:
            data: Any = yaml.safe_load(text) or {}
            if not isinstance(data, dict):
                raise ValueError("registry document must be a mapping")
            return Registry.model_validate(data)
        except (yaml.YAMLError, ValueError, ValidationError) as e:
            logger.warning(
                "Registry file is invalid, using defaults",
                path=str(self.path),
                error=str(e),
            )
            return Registry()

    def _write(self, registry: Registry) -> None:
        document: Dict[str, Any] = registry.model_dump(mode="json")
        content = yaml.safe_dump(document, sort_keys=False, allow_unicode=True)

        directory = self.path.resolve().parent
        try:
            directory.mkdir(parents=True, exist_ok=True)
            fd, tmp_name = tempfile.mkstemp(
                dir=str(directory), prefix=f".{self.path.name}.", suffix=".tmp"
            )
            try:
                with os.fdopen(fd, "w", encoding="utf-8") as f:
                    f.write(content)
                    f.flush()
                    os.fsync(f.fileno())
                os.replace(tmp_name, self.path)
            except BaseException:
                Path(tmp_name).unlink(missing_ok=True)
                raise
        except OSError as e:
            raise PersistenceError(f"Could not write registry {self.path}: {e}") from e
