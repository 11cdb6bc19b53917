"""
Tests for the document encoder.
"""

import base64

import pytest

from agenda_genius.agenda.encoder import (
    DEFAULT_MIME_TYPE,
    RawUpload,
    decode_payload,
    encode_file,
    encode_files,
    resolve_mime_type,
)
from agenda_genius.agenda.models import FileRecord


pytestmark = pytest.mark.asyncio


class TestEncodeFile:

    async def test_data_uri_format(self):
        record = encode_file("brief.txt", b"hello", "text/plain")
        assert record.content == "data:text/plain;base64," + base64.b64encode(b"hello").decode()
        assert record.size_bytes == 5
        assert record.mime_type == "text/plain"

    async def test_mime_guessed_from_extension(self):
        assert resolve_mime_type("notes.pdf") == "application/pdf"
        assert resolve_mime_type("mystery.zzz") == DEFAULT_MIME_TYPE
        assert resolve_mime_type("notes.pdf", "text/plain") == "text/plain"

    async def test_decode_recovers_bytes(self, pdf_file):
        assert decode_payload(pdf_file) == b"%PDF-1.4 fake"

    async def test_decode_invalid_base64(self):
        record = FileRecord(name="bad.txt", mime_type="text/plain", content="data:text/plain;base64,@@@", size_bytes=3)
        with pytest.raises(ValueError):
            decode_payload(record)

    async def test_ids_are_unique(self):
        assert encode_file("a.txt", b"a").id != encode_file("a.txt", b"a").id


class TestEncodeFiles:

    async def test_batch_preserves_order(self):
        records = await encode_files([
            RawUpload(name="one.txt", data=b"1"),
            RawUpload(name="two.md", data=b"2", mime_type="text/markdown"),
            RawUpload(name="three.png", data=b"\x89PNG"),
        ])
        assert [r.name for r in records] == ["one.txt", "two.md", "three.png"]
        assert records[1].mime_type == "text/markdown"
        assert records[2].mime_type == "image/png"

    async def test_empty_batch(self):
        assert await encode_files([]) == []
