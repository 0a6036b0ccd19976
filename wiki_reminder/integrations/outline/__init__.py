"""Outline wiki integration."""

from .client import (
    OutlineClient,
    WikiApiError,
    WikiCollectionInfo,
    WikiDocument,
    WikiUser,
)

__all__ = [
    "OutlineClient",
    "WikiApiError",
    "WikiCollectionInfo",
    "WikiDocument",
    "WikiUser",
]
