"""
Domain models for dic.

Defines the lookup result and filter schema shared by the Google client, the
pipeline tasks and the CLI, plus the enums describing per-record failure
kinds and the emission policy for failed records.
"""
from __future__ import annotations

from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, Field

Record = List[str]


class ImageType(str, Enum):
    UNDEFINED = "undefined"
    CLIPART = "clipart"
    FACE = "face"
    LINEART = "lineart"
    NEWS = "news"
    PHOTO = "photo"


class ImageSize(str, Enum):
    UNDEFINED = "undefined"
    HUGE = "huge"
    ICON = "icon"
    LARGE = "large"
    MEDIUM = "medium"
    SMALL = "small"
    XLARGE = "xlarge"
    XXLARGE = "xxlarge"


class ErrorKind(str, Enum):
    """Why a record could not be resolved to a link."""

    MALFORMED_RECORD = "malformed_record"
    LOOKUP_FAILED = "lookup_failed"
    NO_RESULTS = "no_results"
    TIMEOUT = "timeout"
    CANCELLED = "cancelled"


class FailurePolicy(str, Enum):
    """What the sequencer does with a record whose lookup failed."""

    SENTINEL = "sentinel"
    SKIP = "skip"


class SearchOptions(BaseModel):
    """
    Filters forwarded to the lookup service. `undefined` disables a filter.
    """

    image_type: ImageType = Field(ImageType.UNDEFINED, description="Image type filter.")
    image_size: ImageSize = Field(ImageSize.UNDEFINED, description="Image size filter.")

    model_config = {"frozen": True}

    def query_params(self) -> dict[str, str]:
        params: dict[str, str] = {}
        if self.image_type is not ImageType.UNDEFINED:
            params["imgType"] = self.image_type.value
        if self.image_size is not ImageSize.UNDEFINED:
            params["imgSize"] = self.image_size.value
        return params


class SearchResult(BaseModel):
    """
    A single image returned by the lookup service. Only `link` is relied upon.
    """

    link: str = Field(..., description="Direct URL of the image.")
    title: Optional[str] = Field(None, description="Title of the page hosting the image.")
    mime: Optional[str] = Field(None, description="Image MIME type.")
    display_link: Optional[str] = Field(None, alias="displayLink", description="Host of the page.")
    width: Optional[int] = Field(None, description="Image width in pixels.")
    height: Optional[int] = Field(None, description="Image height in pixels.")
    thumbnail_link: Optional[str] = Field(None, alias="thumbnailLink", description="Thumbnail URL.")

    model_config = {
        "frozen": True,
        "populate_by_name": True,
        "extra": "ignore",
    }


__all__ = [
    "Record",
    "ImageType",
    "ImageSize",
    "ErrorKind",
    "FailurePolicy",
    "SearchOptions",
    "SearchResult",
]
