from __future__ import annotations
from fastapi import HTTPException, UploadFile
from starlette import status


async def read_upload_text(f: UploadFile, max_bytes: int) -> str:
    """
    Read an uploaded script into memory (nothing is stored on disk).
    Raises 413 past max_bytes and 400 if the file is not UTF-8 text.
    """
    size = 0
    chunks = []
    while True:
        chunk = await f.read(64 * 1024)
        if not chunk:
            break
        size += len(chunk)
        if size > max_bytes:
            raise HTTPException(status.HTTP_413_REQUEST_ENTITY_TOO_LARGE, "Script file is too large.")
        chunks.append(chunk)

    try:
        return b"".join(chunks).decode("utf-8-sig")
    except UnicodeDecodeError:
        raise HTTPException(status.HTTP_400_BAD_REQUEST, "Script file must be UTF-8 text.")
