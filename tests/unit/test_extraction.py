"""Unit tests for content extraction and text helpers."""

import builtins
import os

import pytest

from artaka.core.extraction import extract_file_content
from artaka.core.text import is_image, parse_json_object, remove_no_think


class TestTextHelpers:
    def test_remove_no_think(self):
        assert remove_no_think("Find report.pdf /no_think") == "Find report.pdf"
        assert remove_no_think("no_think at start") == "at start"

    @pytest.mark.parametrize("name", ["a.jpg", "b.JPEG", "c.png", "d.webp"])
    def test_is_image(self, name):
        assert is_image(name)

    def test_gif_is_not_an_image(self):
        assert not is_image("e.gif")

    def test_parse_json_object_rejects_arrays(self):
        with pytest.raises(ValueError):
            parse_json_object("[1, 2]")


@pytest.mark.asyncio
class TestExtractFileContent:
    """Test best-effort excerpts."""

    async def test_plain_text_is_capped(self, temp_dir):
        path = os.path.join(temp_dir, "long.txt")
        with open(path, "w") as f:
            f.write("x" * 5000)

        content = await extract_file_content(path)

        assert content == "x" * 2000

    async def test_csv_is_read_directly(self, temp_dir):
        path = os.path.join(temp_dir, "data.csv")
        with open(path, "w") as f:
            f.write("a,b\n1,2\n")

        assert await extract_file_content(path, max_chars=100) == "a,b\n1,2\n"

    async def test_unsupported_format(self, temp_dir):
        path = os.path.join(temp_dir, "movie.mkv")
        with open(path, "wb") as f:
            f.write(b"\x00")

        assert await extract_file_content(path) is None

    async def test_whitespace_only_is_none(self, temp_dir):
        path = os.path.join(temp_dir, "blank.md")
        with open(path, "w") as f:
            f.write("  \n\n ")

        assert await extract_file_content(path) is None

    async def test_missing_file_is_none(self, temp_dir):
        assert await extract_file_content(os.path.join(temp_dir, "gone.txt")) is None

    async def test_missing_optional_library_is_none(self, temp_dir, monkeypatch):
        path = os.path.join(temp_dir, "paper.pdf")
        with open(path, "wb") as f:
            f.write(b"%PDF-1.4")

        real_import = builtins.__import__

        def fake_import(name, *args, **kwargs):
            if name == "pypdf":
                raise ImportError("No module named 'pypdf'")
            return real_import(name, *args, **kwargs)

        monkeypatch.setattr(builtins, "__import__", fake_import)

        assert await extract_file_content(path) is None
