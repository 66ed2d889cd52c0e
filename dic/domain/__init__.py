from dic.domain.models import (
    ErrorKind,
    FailurePolicy,
    ImageSize,
    ImageType,
    Record,
    SearchOptions,
    SearchResult,
)

__all__ = [
    "ErrorKind",
    "FailurePolicy",
    "ImageSize",
    "ImageType",
    "Record",
    "SearchOptions",
    "SearchResult",
]
