"""ImageStore protocol: where avatar uploads end up.

``upload`` raises ImageUploadError on any failure; ``delete`` never raises
and reports the outcome as a bool.
"""

from dataclasses import dataclass
from typing import Optional, Protocol


class ImageUploadError(Exception):
    """The image host refused or could not be reached."""


@dataclass
class StoredImage:
    url: str
    public_id: str
    size: Optional[int] = None


class ImageStore(Protocol):
    async def upload(self, data: bytes) -> StoredImage: ...

    async def delete(self, public_id: str) -> bool: ...
