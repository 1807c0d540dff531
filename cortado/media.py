"""Input media handle"""

import mimetypes
from dataclasses import dataclass, field
from pathlib import Path
from typing import Union


@dataclass(frozen=True)
class MediaSource:
    """
    Bytes of a user-selected video.

    Attributes:
        name: Original file name, used for display and the probe suffix
        data: Raw file contents
        mime_type: Type hint guessed from the name (may be generic)
    """
    name: str
    data: bytes = field(repr=False)
    mime_type: str = "application/octet-stream"

    @property
    def size(self) -> int:
        return len(self.data)

    @property
    def suffix(self) -> str:
        return Path(self.name).suffix

    @classmethod
    def from_path(cls, path: Union[str, Path]) -> "MediaSource":
        """Read a file from disk into a MediaSource"""
        path = Path(path)
        mime_type, _ = mimetypes.guess_type(path.name)
        return cls(
            name=path.name,
            data=path.read_bytes(),
            mime_type=mime_type or "application/octet-stream",
        )
