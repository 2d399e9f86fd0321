"""
Domain Layer Exceptions

This module defines the exception hierarchy for the Domain Layer.
All domain-specific exceptions inherit from DomainException.

Responsibility:
    - Base exception class for domain errors
    - Type-safe error handling across layers
    - Clear separation from framework exceptions

Architecture Notes:
    - Part of Shared Domain (used across all subdomains)
    - API Layer maps these to HTTP status codes (see src/api/main.py)
    - Batch CLI maps fatal ones (CatalogLoadError, CheckpointError) to exit code 1
"""

from typing import TYPE_CHECKING, Optional

if TYPE_CHECKING:
    from src.domain.product_matching.value_objects.match_pair import MatchPair


class DomainException(Exception):
    """
    Base exception for all domain layer errors.

    All domain-specific exceptions inherit from this class to enable
    type-safe error handling in Application and API layers.

    Usage:
        - Catch this in Application Layer to handle all domain errors
        - API Layer converts to appropriate HTTP status codes
        - Infrastructure Layer raises its own library exceptions (RedisError, OSError)

    Examples:
        >>> raise DomainException("Business rule violation")

        >>> try:
        ...     service.create_match(command)
        ... except DomainException as e:
        ...     logger.error(f"Domain error: {e}")
    """

    def __init__(self, message: str) -> None:
        """
        Initialize domain exception with error message.

        Args:
            message: Human-readable error description
        """
        self.message = message
        super().__init__(message)

    def __str__(self) -> str:
        """String representation of the exception."""
        return f"{self.__class__.__name__}: {self.message}"

    def __repr__(self) -> str:
        """Developer-friendly representation."""
        return f"{self.__class__.__name__}(message={self.message!r})"


class InvalidCatalogRecordError(DomainException):
    """
    Raised when catalog record data is malformed.

    This exception is raised when:
    - price is an empty string (absent price must be None)
    - price cannot be parsed as a decimal or is negative
    - an external record has no external key or source

    Examples:
        >>> raise InvalidCatalogRecordError("price must not be empty string", "price")
    """

    def __init__(self, message: str, field_name: Optional[str] = None) -> None:
        """
        Initialize record validation error.

        Args:
            message: Error description
            field_name: Name of the offending field (optional)
        """
        self.field_name = field_name
        super().__init__(message)


class MatchConflictError(DomainException):
    """
    Raised when an active match already exists for a product pair.

    Only one MatchRecord with status "matched" may exist per
    (local_product_id, external_product_key, source_id). Callers must
    remove (supersede) the existing match before creating a new one.

    Examples:
        >>> raise MatchConflictError("Match already exists between these products", pair)
    """

    def __init__(self, message: str, pair: Optional["MatchPair"] = None) -> None:
        self.pair = pair
        super().__init__(message)


class MatchNotFoundError(DomainException):
    """
    Raised when no active match exists for the requested pair or id.

    Examples:
        >>> raise MatchNotFoundError("No match found between these products", pair)
    """

    def __init__(self, message: str, pair: Optional["MatchPair"] = None) -> None:
        self.pair = pair
        super().__init__(message)


class InvalidMatchTransitionError(DomainException):
    """
    Raised when a MatchRecord status transition is not allowed.

    Allowed transitions:
        matched -> superseded
        matched -> not_matched
        not_matched -> matched

    "superseded" is terminal.

    Examples:
        >>> raise InvalidMatchTransitionError(
        ...     "Cannot move superseded match to matched", "superseded", "matched"
        ... )
    """

    def __init__(
        self,
        message: str,
        current_status: Optional[str] = None,
        target_status: Optional[str] = None,
    ) -> None:
        self.current_status = current_status
        self.target_status = target_status
        super().__init__(message)


class SourceNotFoundError(DomainException):
    """
    Raised when an external catalog source code is unknown.

    Examples:
        >>> raise SourceNotFoundError("Source not found", "AMZ")
    """

    def __init__(self, message: str, source_code: Optional[str] = None) -> None:
        self.source_code = source_code
        super().__init__(message)


class CatalogLoadError(DomainException):
    """
    Raised when a paged catalog read fails.

    Fatal to a batch run: the driver stops, keeps the checkpoint and the
    operator reruns the same command to resume.

    Examples:
        >>> raise CatalogLoadError("Cannot read catalog file", "internal.csv")
    """

    def __init__(
        self,
        message: str,
        source: Optional[str] = None,
        original_error: Optional[Exception] = None,
    ) -> None:
        self.source = source
        self.original_error = original_error
        super().__init__(message)


class CheckpointError(DomainException):
    """
    Raised when the batch checkpoint file cannot be written.

    Examples:
        >>> raise CheckpointError("Cannot write checkpoint", "/tmp/checkpoint.json")
    """

    def __init__(
        self,
        message: str,
        path: Optional[str] = None,
        original_error: Optional[Exception] = None,
    ) -> None:
        self.path = path
        self.original_error = original_error
        super().__init__(message)
