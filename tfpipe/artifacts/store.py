"""
Artifact Store - Files handed from one stage to the next.

Layout:
    <root>/<run_id>/<name>/<file>
    <root>/<run_id>/<name>/metadata.json
"""

from __future__ import annotations

import json
import shutil
from dataclasses import asdict, dataclass
from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import List, Optional

from loguru import logger

from tfpipe.core.exceptions import ArtifactError, ArtifactNotFoundError
from tfpipe.utils.logger import log_prefix

METADATA_FILE = "metadata.json"


@dataclass
class ArtifactMetadata:
    """Metadata stored next to each artifact."""

    run_id: str
    name: str
    filename: str
    size_bytes: int
    created_at: str
    expires_at: str

    @property
    def expired(self) -> bool:
        return datetime.fromisoformat(self.expires_at) <= datetime.now(timezone.utc)


class ArtifactStore:
    """Local artifact store with per-artifact retention."""

    def __init__(self, root: Path):
        self.root = Path(root)

    def _artifact_dir(self, run_id: str, name: str) -> Path:
        return self.root / run_id / name

    def upload(self, run_id: str, name: str, path: Path, retention_days: int = 1) -> ArtifactMetadata:
        """
        Store a file as artifact `name` for the run.

        Raises:
            ArtifactError: If the source file does not exist.
        """
        path = Path(path)
        if not path.is_file():
            raise ArtifactError(
                f"Cannot upload artifact '{name}': {path} not found",
                {"path": str(path)},
            )

        target_dir = self._artifact_dir(run_id, name)
        if target_dir.exists():
            shutil.rmtree(target_dir)
        target_dir.mkdir(parents=True)
        shutil.copy2(path, target_dir / path.name)

        now = datetime.now(timezone.utc)
        metadata = ArtifactMetadata(
            run_id=run_id,
            name=name,
            filename=path.name,
            size_bytes=path.stat().st_size,
            created_at=now.isoformat(),
            expires_at=(now + timedelta(days=retention_days)).isoformat(),
        )
        with open(target_dir / METADATA_FILE, "w", encoding="utf-8") as f:
            json.dump(asdict(metadata), f, indent=2)

        logger.info(f"{log_prefix('📦')} Uploaded artifact '{name}' ({metadata.size_bytes} bytes, {retention_days}d retention)")
        return metadata

    def metadata(self, run_id: str, name: str) -> Optional[ArtifactMetadata]:
        meta_path = self._artifact_dir(run_id, name) / METADATA_FILE
        if not meta_path.is_file():
            return None
        try:
            with open(meta_path, encoding="utf-8") as f:
                return ArtifactMetadata(**json.load(f))
        except (OSError, ValueError, TypeError) as e:
            logger.warning(f"{log_prefix('⚠️')} Unreadable artifact metadata {meta_path}: {e}")
            return None

    def download(self, run_id: str, name: str, dest_dir: Path) -> Path:
        """
        Restore artifact `name` into dest_dir.

        Returns:
            Path of the restored file.

        Raises:
            ArtifactNotFoundError: If the artifact is missing or expired.
        """
        metadata = self.metadata(run_id, name)
        if metadata is None or metadata.expired:
            raise ArtifactNotFoundError(run_id, name)

        source = self._artifact_dir(run_id, name) / metadata.filename
        if not source.is_file():
            raise ArtifactNotFoundError(run_id, name)

        dest_dir = Path(dest_dir)
        dest_dir.mkdir(parents=True, exist_ok=True)
        destination = dest_dir / metadata.filename
        shutil.copy2(source, destination)
        logger.info(f"{log_prefix('📦')} Downloaded artifact '{name}' to {destination}")
        return destination

    def list_artifacts(self) -> List[ArtifactMetadata]:
        found = []
        if not self.root.is_dir():
            return found
        for run_dir in sorted(p for p in self.root.iterdir() if p.is_dir()):
            for artifact_dir in sorted(p for p in run_dir.iterdir() if p.is_dir()):
                metadata = self.metadata(run_dir.name, artifact_dir.name)
                if metadata is not None:
                    found.append(metadata)
        return found

    def prune(self) -> int:
        """
        Delete expired artifacts and empty run directories.

        Returns:
            Number of artifacts removed.
        """
        removed = 0
        for metadata in self.list_artifacts():
            if metadata.expired:
                shutil.rmtree(self._artifact_dir(metadata.run_id, metadata.name))
                removed += 1

        if self.root.is_dir():
            for run_dir in self.root.iterdir():
                if run_dir.is_dir() and not any(run_dir.iterdir()):
                    run_dir.rmdir()

        if removed:
            logger.info(f"{log_prefix('🧹')} Pruned {removed} expired artifact(s)")
        return removed
