"""
Local files selected for upload.
"""
import hashlib
import mimetypes
import os
from typing import Optional
from dataclasses import dataclass


@dataclass(frozen=True)
class FileBlob:
    """A file picked by the user: its name, declared type and bytes."""
    name: str
    type: str
    data: bytes

    @property
    def size(self) -> int:
        return len(self.data)

    @property
    def is_image(self) -> bool:
        return self.type.startswith("image/")

    def sha256(self) -> str:
        return hashlib.sha256(self.data).hexdigest()

    @classmethod
    def from_path(cls, path: str, content_type: Optional[str] = None) -> "FileBlob":
        """
        Read a file from disk.

        The type is guessed from the extension unless given; unknown
        extensions become application/octet-stream and are later rejected
        by the image-only check.
        """
        if content_type is None:
            content_type = mimetypes.guess_type(path)[0] or "application/octet-stream"
        with open(path, "rb") as f:
            data = f.read()
        return cls(name=os.path.basename(path), type=content_type, data=data)
