"""Tests for storyreel.webscraping.media — MediaDownloader, guess_extension."""

from unittest.mock import MagicMock

import pytest
import requests

from storyreel.core.errors import MediaUploadError
from storyreel.webscraping.media import MediaDownloader, guess_extension


def _response(chunks=(b"data",), content_type="image/png", status_error=None):
    resp = MagicMock()
    resp.headers = {"Content-Type": content_type}
    resp.iter_content.return_value = list(chunks)
    if status_error:
        resp.raise_for_status.side_effect = status_error
    return resp


class TestGuessExtension:
    def test_from_url(self):
        assert guess_extension("https://cdn.test/a/b/clip.MP4?sig=1") == ".mp4"
        assert guess_extension("https://cdn.test/photo.webp") == ".webp"

    def test_from_content_type(self):
        assert guess_extension("https://cdn.test/media/123", "video/webm") == ".webm"
        assert guess_extension("https://cdn.test/media/123", "image/png; charset=binary") == ".png"

    def test_default(self):
        assert guess_extension("https://cdn.test/media/123") == ".jpg"


class TestDownload:
    def test_writes_chunks(self, tmp_path):
        session = MagicMock()
        session.get.return_value = _response(chunks=[b"ab", b"cd"])
        path = MediaDownloader(session=session).download("https://x.test/pic.png", tmp_path / "uploads")
        assert path.read_bytes() == b"abcd"
        assert path.suffix == ".png"
        session.get.assert_called_once_with("https://x.test/pic.png", timeout=30, stream=True)

    def test_extension_from_header(self, tmp_path):
        session = MagicMock()
        session.get.return_value = _response(content_type="video/mp4")
        path = MediaDownloader(session=session).download("https://x.test/v/1", tmp_path)
        assert path.suffix == ".mp4"

    def test_explicit_filename(self, tmp_path):
        session = MagicMock()
        session.get.return_value = _response()
        path = MediaDownloader(session=session).download("https://x.test/p.png", tmp_path, "bg.png")
        assert path == tmp_path / "bg.png"

    def test_http_error(self, tmp_path):
        session = MagicMock()
        session.get.return_value = _response(status_error=requests.HTTPError("404"))
        with pytest.raises(MediaUploadError, match="404"):
            MediaDownloader(session=session).download("https://x.test/p.png", tmp_path)
        assert list(tmp_path.iterdir()) == []

    def test_connection_error(self, tmp_path):
        session = MagicMock()
        session.get.side_effect = requests.ConnectionError("refused")
        with pytest.raises(MediaUploadError):
            MediaDownloader(session=session).download("https://x.test/p.png", tmp_path)

    def test_broken_stream_removes_partial_file(self, tmp_path):
        resp = _response()
        resp.iter_content.side_effect = requests.exceptions.ChunkedEncodingError("cut")
        session = MagicMock()
        session.get.return_value = resp
        with pytest.raises(MediaUploadError):
            MediaDownloader(session=session).download("https://x.test/p.png", tmp_path)
        assert list(tmp_path.iterdir()) == []
