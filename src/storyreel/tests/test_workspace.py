"""Tests for storyreel.core.workspace — Workspace, uploads, AssetMetadata."""

import io
import json
from unittest.mock import patch

import pytest

from storyreel.core.errors import MediaUploadError
from storyreel.core.workspace import AssetMetadata, Workspace, stored_name


# ── AssetMetadata ───────────────────────────────────────────────────────

class TestAssetMetadata:
    def test_basic_creation(self):
        a = AssetMetadata(asset_id="img_001", filename="1-photo.jpg", type="image")
        assert a.source == ""
        assert a.original_name == ""

    def test_public_url(self):
        a = AssetMetadata(asset_id="img_001", filename="1-photo.jpg", type="image")
        assert Workspace.public_url(a) == "/uploads/1-photo.jpg"


# ── Workspace initialization ───────────────────────────────────────────

class TestWorkspaceInit:
    def test_initialize_creates_dirs(self, workspace):
        assert workspace.data_dir.is_dir()
        assert workspace.uploads_dir.is_dir()
        assert workspace.manifest_path.exists()
        assert workspace.slides_path == workspace.data_dir / "slides.json"

    def test_manifest_content(self, workspace):
        data = json.loads(workspace.manifest_path.read_text())
        assert data["project_name"] == "test_project"
        assert data["assets"] == {}

    def test_load_round_trip(self, workspace):
        workspace.store_upload("bg.png", b"png")
        loaded = Workspace.load(workspace.root_path)
        assert loaded.project_name == "test_project"
        assert loaded.assets == workspace.assets

    def test_load_missing(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            Workspace.load(tmp_path / "nope")

    def test_open_creates_or_loads(self, tmp_path):
        ws = Workspace.open(tmp_path / "demo")
        assert ws.project_name == "demo"
        assert ws.uploads_dir.is_dir()
        ws.store_upload("a.png", b"x")
        again = Workspace.open(tmp_path / "demo")
        assert len(again.assets) == 1


# ── Uploads ─────────────────────────────────────────────────────────────

class TestUploads:
    def test_stored_name(self):
        assert stored_name("my cat photo.png", now_ms=1700000000000) == "1700000000000-my_cat_photo.png"
        assert stored_name("../../etc/passwd", now_ms=1) == "1-passwd"

    def test_store_bytes(self, workspace):
        asset = workspace.store_upload("beach day.jpg", b"jpeg-bytes")
        path = workspace.get_asset_path(asset.asset_id)
        assert path.read_bytes() == b"jpeg-bytes"
        assert path.parent == workspace.uploads_dir
        assert asset.filename.endswith("-beach_day.jpg")
        assert asset.type == "image"
        assert asset.original_name == "beach day.jpg"
        assert workspace.public_url(asset) == f"/uploads/{asset.filename}"

    def test_store_stream(self, workspace):
        asset = workspace.store_upload("clip.MP4", io.BytesIO(b"video"))
        assert asset.type == "video"
        assert asset.asset_id.startswith("vid_")
        assert workspace.get_asset_path(asset.asset_id).read_bytes() == b"video"

    def test_same_name_twice_gets_two_files(self, workspace):
        with patch("storyreel.core.workspace.time.time", return_value=1700000000.0):
            a = workspace.store_upload("x.png", b"1")
            b = workspace.store_upload("x.png", b"2")
        assert a.filename != b.filename
        assert len(list(workspace.uploads_dir.iterdir())) == 2

    def test_registered_in_manifest(self, workspace):
        asset = workspace.store_upload("x.png", b"1")
        data = json.loads(workspace.manifest_path.read_text())
        assert asset.asset_id in data["assets"]

    def test_empty_filename(self, workspace):
        with pytest.raises(MediaUploadError):
            workspace.store_upload("", b"1")

    def test_write_failure_leaves_nothing(self, workspace):
        class Broken(io.BytesIO):
            def read(self, *args):
                raise OSError("connection reset")

        with pytest.raises(MediaUploadError, match="connection reset"):
            workspace.store_upload("x.png", Broken())
        assert list(workspace.uploads_dir.iterdir()) == []
        assert workspace.assets == {}

    def test_get_asset_path_unknown(self, workspace):
        assert workspace.get_asset_path("nope") is None

    def test_unwritable_manifest_leaves_nothing(self, workspace):
        workspace.manifest_path.unlink()
        workspace.manifest_path.mkdir()

        with pytest.raises(MediaUploadError):
            workspace.store_upload("bg.png", b"png")
        assert list(workspace.uploads_dir.iterdir()) == []
        assert workspace.assets == {}

    def test_register_asset_rolls_back_on_manifest_error(self, workspace):
        asset = AssetMetadata(asset_id="img_1", filename="1-a.png", type="image")
        with patch.object(Workspace, "save_manifest", side_effect=OSError("read-only")):
            with pytest.raises(OSError):
                workspace.register_asset(asset)
        assert "img_1" not in workspace.assets
