"""
Document Encoder - turns uploaded files into self-contained FileRecords.

Each file is encoded on a worker thread; a batch is only returned once every
file in it has finished, so callers never see a partial upload.
"""

import asyncio
import base64
import binascii
import logging
import mimetypes
from dataclasses import dataclass
from typing import Iterable, List, Optional

from .models import FileRecord

logger = logging.getLogger(__name__)

DEFAULT_MIME_TYPE = "application/octet-stream"


@dataclass
class RawUpload:
    """Bytes received from the client before encoding."""
    name: str
    data: bytes
    mime_type: Optional[str] = None


def resolve_mime_type(name: str, declared: Optional[str] = None) -> str:
    """Use the declared type, else guess from the file extension."""
    if declared:
        return declared
    guessed, _ = mimetypes.guess_type(name)
    return guessed or DEFAULT_MIME_TYPE


def encode_file(name: str, data: bytes, mime_type: Optional[str] = None) -> FileRecord:
    """
    Encode raw bytes as a data URI FileRecord.

    Args:
        name: Original file name
        data: File contents
        mime_type: Declared MIME type, guessed from name if empty

    Returns:
        Immutable FileRecord
    """
    mime = resolve_mime_type(name, mime_type)
    payload = base64.b64encode(data).decode("ascii")
    return FileRecord(
        name=name,
        mime_type=mime,
        content=f"data:{mime};base64,{payload}",
        size_bytes=len(data),
    )


def decode_payload(record: FileRecord) -> bytes:
    """
    Recover the raw bytes of a FileRecord.

    Raises:
        ValueError: if the content is not valid base64
    """
    try:
        return base64.b64decode(record.payload, validate=True)
    except (binascii.Error, ValueError) as e:
        raise ValueError(f"File {record.name!r} has invalid base64 content: {e}") from e


async def encode_files(uploads: Iterable[RawUpload]) -> List[FileRecord]:
    """Encode a batch concurrently and return it whole, in input order."""
    uploads = list(uploads)
    if not uploads:
        return []

    records = await asyncio.gather(*(
        asyncio.to_thread(encode_file, u.name, u.data, u.mime_type)
        for u in uploads
    ))

    logger.info(f"Encoded {len(records)} file(s): {', '.join(r.name for r in records)}")
    return list(records)
