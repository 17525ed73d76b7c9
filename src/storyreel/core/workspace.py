"""Project workspace and media library."""

import json
import logging
import re
import shutil
import time
import uuid
from pathlib import Path
from typing import BinaryIO, Optional, Union
from pydantic import BaseModel, Field

from .errors import MediaUploadError
from .slides import media_kind

logger = logging.getLogger("StoryReel.core.workspace")

UPLOADS_URL_PREFIX = "/uploads"


class AssetMetadata(BaseModel):
    """Metadata for a stored media file."""
    asset_id: str
    filename: str
    type: str  # "image" or "video"
    source: str = ""  # "upload", "download", "local"
    original_name: str = ""


def stored_name(original: str, now_ms: Optional[int] = None) -> str:
    """Unique on-disk name: ``<millis>-<original with whitespace as _>``."""
    stamp = now_ms if now_ms is not None else int(time.time() * 1000)
    base = re.sub(r"\s", "_", Path(original).name)
    return f"{stamp}-{base}"


class Workspace(BaseModel):
    """Manages a slideshow project directory and its media manifest."""
    project_name: str
    root_path: Path
    assets: dict[str, AssetMetadata] = Field(default_factory=dict)

    model_config = {"arbitrary_types_allowed": True}

    @property
    def data_dir(self) -> Path:
        return self.root_path / "data"

    @property
    def slides_path(self) -> Path:
        return self.data_dir / "slides.json"

    @property
    def uploads_dir(self) -> Path:
        return self.root_path / "uploads"

    @property
    def manifest_path(self) -> Path:
        return self.root_path / "project.json"

    def initialize(self) -> "Workspace":
        """Create the project directory structure."""
        for d in [self.data_dir, self.uploads_dir]:
            d.mkdir(parents=True, exist_ok=True)
        self.save_manifest()
        return self

    def save_manifest(self):
        data = {
            "project_name": self.project_name,
            "assets": {k: v.model_dump() for k, v in self.assets.items()},
        }
        self.manifest_path.write_text(json.dumps(data, indent=2, default=str))

    @classmethod
    def load(cls, project_path: Path) -> "Workspace":
        """Load a workspace from an existing project directory."""
        manifest_path = project_path / "project.json"
        if not manifest_path.exists():
            raise FileNotFoundError(f"No project.json found in {project_path}")

        data = json.loads(manifest_path.read_text())
        assets = {
            k: AssetMetadata(**v) for k, v in data.get("assets", {}).items()
        }
        return cls(
            project_name=data["project_name"],
            root_path=project_path,
            assets=assets,
        )

    @classmethod
    def open(cls, project_path: Path) -> "Workspace":
        """Load the project at ``project_path``, creating it if missing."""
        project_path = Path(project_path)
        if (project_path / "project.json").exists():
            return cls.load(project_path)
        return cls(project_name=project_path.name, root_path=project_path).initialize()

    def register_asset(self, asset: AssetMetadata) -> AssetMetadata:
        self.assets[asset.asset_id] = asset
        try:
            self.save_manifest()
        except OSError:
            del self.assets[asset.asset_id]
            raise
        return asset

    def get_asset_path(self, asset_id: str) -> Optional[Path]:
        asset = self.assets.get(asset_id)
        if not asset:
            return None
        return self.uploads_dir / asset.filename

    @staticmethod
    def public_url(asset: AssetMetadata) -> str:
        return f"{UPLOADS_URL_PREFIX}/{asset.filename}"

    def store_upload(self, filename: str, content: Union[bytes, BinaryIO],
                     source: str = "upload") -> AssetMetadata:
        """Write an uploaded file into uploads/ and register it.

        ``content`` is raw bytes or a readable binary stream. On failure the
        partially written file is removed and MediaUploadError is raised.
        """
        if not filename or not Path(filename).name:
            raise MediaUploadError("No file name given")

        self.uploads_dir.mkdir(parents=True, exist_ok=True)
        stamp = int(time.time() * 1000)
        dest = self.uploads_dir / stored_name(filename, stamp)
        while dest.exists():
            stamp += 1
            dest = self.uploads_dir / stored_name(filename, stamp)
        try:
            with open(dest, "wb") as f:
                if isinstance(content, (bytes, bytearray)):
                    f.write(content)
                else:
                    shutil.copyfileobj(content, f)
        except OSError as e:
            dest.unlink(missing_ok=True)
            logger.error(f"Upload of {filename} failed: {e}")
            raise MediaUploadError(f"Could not store {filename}: {e}") from e

        try:
            return self.adopt_file(dest, source=source, original_name=Path(filename).name)
        except OSError as e:
            dest.unlink(missing_ok=True)
            logger.error(f"Could not register upload {filename}: {e}")
            raise MediaUploadError(f"Could not register {filename}: {e}") from e

    def adopt_file(self, path: Path, source: str = "local",
                   original_name: str = "") -> AssetMetadata:
        """Register a file that already sits in uploads/."""
        kind = media_kind(path.name)
        asset = AssetMetadata(
            asset_id=f"{'vid' if kind == 'video' else 'img'}_{uuid.uuid4().hex[:8]}",
            filename=path.name,
            type=kind,
            source=source,
            original_name=original_name or path.name,
        )
        logger.info(f"Stored {kind} asset {asset.asset_id} at {path}")
        return self.register_asset(asset)
