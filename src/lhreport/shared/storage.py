"""Filesystem artifact store — generated PDFs and their working files."""

from __future__ import annotations

import logging
import shutil
from datetime import datetime
from pathlib import Path

from lhreport.errors import AssetCopyError

logger = logging.getLogger(__name__)

_ALLOWED_SUFFIXES = (".pdf", ".html")


class FileStore:
    """Key-value blob store over a single output directory.

    Names are flat file names; each stored blob is reachable at
    ``{base_url}/{name}`` once the directory is served statically.
    """

    def __init__(self, root: str | Path, *, base_url: str = "/files") -> None:
        self.root = Path(root)
        self.base_url = base_url.rstrip("/")

    def _check_name(self, name: str) -> None:
        if not name.endswith(_ALLOWED_SUFFIXES) or ".." in name or "/" in name or "\\" in name:
            raise ValueError(f"Invalid filename: {name!r}")

    def ensure(self) -> Path:
        self.root.mkdir(parents=True, exist_ok=True)
        return self.root

    def path(self, name: str) -> Path:
        self._check_name(name)
        return self.root / name

    def url(self, name: str) -> str:
        return f"{self.base_url}/{name}"

    def store(self, name: str, data: bytes) -> str:
        """Write ``data`` under ``name`` and return its URL."""
        target = self.path(name)
        self.ensure()
        # Readers only ever see complete files.
        tmp = target.with_name(target.name + ".part")
        try:
            tmp.write_bytes(data)
            tmp.replace(target)
        except OSError:
            tmp.unlink(missing_ok=True)
            raise
        logger.debug("Stored %s (%d bytes)", target, len(data))
        return self.url(name)

    def load(self, name: str) -> bytes:
        target = self.path(name)
        if not target.is_file():
            raise FileNotFoundError(f"File not found: {name}")
        return target.read_bytes()

    def delete(self, name: str) -> None:
        self.path(name).unlink(missing_ok=True)

    def info(self, name: str) -> dict[str, object]:
        """Size and timestamps for a stored file."""
        target = self.path(name)
        if not target.is_file():
            raise FileNotFoundError(f"File not found: {name}")
        stat = target.stat()
        return {
            "filename": name,
            "size": stat.st_size,
            "created": datetime.fromtimestamp(stat.st_ctime).isoformat(),
            "modified": datetime.fromtimestamp(stat.st_mtime).isoformat(),
        }

    def copy_assets(self, *directories: Path) -> list[Path]:
        """Copy asset directories into the store root, keeping their names.

        Missing source directories are skipped. Raises ``AssetCopyError``
        when a copy fails part-way.
        """
        self.ensure()
        copied: list[Path] = []
        for source in directories:
            if not source.is_dir():
                logger.debug("Asset directory %s not found, skipping", source)
                continue
            target = self.root / source.name
            try:
                shutil.copytree(source, target, dirs_exist_ok=True)
            except (OSError, shutil.Error) as exc:
                raise AssetCopyError(f"Could not copy {source} to {target}: {exc}") from exc
            copied.append(target)
        return copied
