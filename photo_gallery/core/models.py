from __future__ import annotations

from typing import Optional

from pydantic import BaseModel, Field

ORIGINAL = "original"
THUMBNAIL = "thumbnail"
MEDIUM = "medium"


class PhotoRecord(BaseModel):
    filename: str
    capture_time: int
    album_key: int
    # Delivery URLs are filled in at query time and never persisted.
    thumb_url: Optional[str] = Field(default=None, exclude=True)
    medium_url: Optional[str] = Field(default=None, exclude=True)

    def to_stored(self) -> dict:
        return self.model_dump()

    def to_public(self) -> dict:
        data = self.model_dump()
        data["thumb_url"] = self.thumb_url
        data["medium_url"] = self.medium_url
        return data


class VariantSpec(BaseModel):
    """One derivative kind of a source image and where it lives in the bucket."""

    name: str
    prefix: str
    height: Optional[int] = None  # None keeps the source bytes unchanged

    @property
    def resized(self) -> bool:
        return self.height is not None

    def key_for(self, filename: str) -> str:
        return f"{self.prefix}{filename}"


def default_variants(
    image_prefix: str = "images/",
    thumb_prefix: str = "thumbs/",
    medium_prefix: str = "medium/",
) -> list[VariantSpec]:
    return [
        VariantSpec(name=ORIGINAL, prefix=image_prefix),
        VariantSpec(name=THUMBNAIL, prefix=thumb_prefix, height=162),
        VariantSpec(name=MEDIUM, prefix=medium_prefix, height=768),
    ]


class IngestError(BaseModel):
    filename: str
    kind: str  # extraction | store | check | upload | resize | read
    message: str
    variant: Optional[str] = None


class IngestReport(BaseModel):
    processed: int = 0
    skipped: int = 0
    uploaded: int = 0
    cancelled: bool = False
    errors: list[IngestError] = Field(default_factory=list)

    @property
    def failed(self) -> int:
        return len({error.filename for error in self.errors})
