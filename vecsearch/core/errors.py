"""
Error taxonomy for the vector search core.
All errors are raised synchronously to the immediate caller and never retried.
"""


class VectorSearchError(Exception):
    """Base exception for vector search operations."""
    pass


class ValidationError(VectorSearchError):
    """Malformed record: missing/non-numeric embedding or schema mismatch."""
    pass


class NotFoundError(VectorSearchError):
    """Filter matched nothing on a single-item update/remove/get."""
    pass


class LengthMismatchError(VectorSearchError, ValueError):
    """Vectors of differing dimensionality were compared."""

    def __init__(self, len_a: int, len_b: int):
        self.len_a = len_a
        self.len_b = len_b
        super().__init__(f"Vectors must have the same length (got {len_a} and {len_b})")


class StorageUnavailableError(VectorSearchError):
    """External object store is absent or inoperable."""
    pass


class StorageOperationError(VectorSearchError):
    """Open, transaction or cursor failure during a store operation."""
    pass


class InvalidIndexError(VectorSearchError, IndexError):
    """Entry index out of range for a graph layer."""

    def __init__(self, entry: int, layer_size: int):
        self.entry = entry
        self.layer_size = layer_size
        super().__init__(f"Invalid entry index: {entry} (layer has {layer_size} nodes)")
