"""Error taxonomy for collections and models.

Programmer errors (wrong argument shape, out-of-bounds index, claiming an
owned model) are raised synchronously before any I/O. Expected failures
(transport failures, missing identities, reconciliation aborts) are returned
in the ``error`` field of a result object instead.

Usage:
    result = await collection.delete("missing")
    if isinstance(result.error, NotInCollectionError):
        ...
"""

from __future__ import annotations


class ModelSyncError(Exception):
    """Base class for every error raised by modelsync."""

    pass


# --- Validation ---


class ValidationError(ModelSyncError):
    """Raised when an argument fails a pre-condition check."""

    pass


class NotAModelError(ValidationError, TypeError):
    """Raised when a collection receives something that is not a Model."""

    pass


class OutOfBoundsError(ValidationError, IndexError):
    """Raised when an insertion index is outside ``[0, len(collection)]``."""

    pass


# --- State ---


class StateError(ModelSyncError):
    """Raised (or returned) when a model is in the wrong state for an operation."""

    pass


class NotInCollectionError(StateError):
    """The model could not be resolved in the collection."""

    def __init__(self, message: str = "Model is not in the collection") -> None:
        super().__init__(message)


class AlreadyDeletedError(StateError):
    """The model has already been deleted."""

    def __init__(self, message: str = "Model is deleted") -> None:
        super().__init__(message)


class AlreadyDeletingError(StateError):
    """A delete for the model is already in flight."""

    def __init__(self, message: str = "Model is in the process of deleting") -> None:
        super().__init__(message)


class AlreadyOwnedError(StateError):
    """The model already belongs to another non-lite collection."""

    def __init__(self, message: str = 'Model can be in only one non "lite" collection') -> None:
        super().__init__(message)


class CollectionNotPresentError(StateError):
    """A model convenience method was called on a model without a collection."""

    def __init__(self, message: str = "Collection not present") -> None:
        super().__init__(message)


# --- Identity ---


class IdentityExtractionError(ModelSyncError):
    """The save response did not carry the identity the model needs."""

    pass


# --- Reconciliation ---


class ReconciliationError(ModelSyncError):
    """Raised while merging a loaded batch; aborts the whole batch."""

    pass


class NonUniqueIdentityError(ReconciliationError):
    """A candidate kept with KEEP_BOTH still collides with an indexed model."""

    def __init__(self, message: str = "New model has a non unique identity") -> None:
        super().__init__(message)


class InvalidCompareResultError(ReconciliationError):
    """``compare_fn`` returned something other than a CompareResult."""

    pass


# --- Transport ---


class TransportError(ModelSyncError):
    """Base class for errors raised by the bundled transports.

    Collections never wrap transport exceptions: whatever a transport raises is
    returned verbatim in the result's ``error`` field.
    """

    pass
