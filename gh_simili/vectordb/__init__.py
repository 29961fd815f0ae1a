"""Similarity index access."""

from .client import VectorIndexClient, VectorStoreError, collection_name

__all__ = ["VectorIndexClient", "VectorStoreError", "collection_name"]
