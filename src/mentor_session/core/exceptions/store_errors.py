"""Remote document store exceptions."""

from typing import Optional

from .base import MentorSessionError


class TransientStoreError(MentorSessionError):
    """Network or remote-store failure.
    
    Logged and swallowed on heartbeat and audit paths; surfaced on the
    validation path.
    """
    
    def __init__(
        self,
        message: str = "Document store unavailable",
        *,
        operation: Optional[str] = None,
        collection: Optional[str] = None,
        doc_id: Optional[str] = None,
    ) -> None:
        super().__init__(
            message,
            error_code="TRANSIENT_STORE_ERROR",
            details={"operation": operation, "collection": collection, "doc_id": doc_id},
        )
        self.operation = operation
        self.collection = collection
        self.doc_id = doc_id
    
    @classmethod
    def wrap(
        cls,
        error: Exception,
        operation: str,
        collection: Optional[str] = None,
        doc_id: Optional[str] = None,
    ) -> "TransientStoreError":
        """Wrap a driver-level error raised during a store operation."""
        return cls(
            f"{operation} failed: {error}",
            operation=operation,
            collection=collection,
            doc_id=doc_id,
        )


class DocumentNotFound(MentorSessionError):
    """Raised by a field update against a document that does not exist."""
    
    def __init__(self, collection: str, doc_id: str) -> None:
        super().__init__(
            f"No document {collection}/{doc_id}",
            error_code="DOCUMENT_NOT_FOUND",
            details={"collection": collection, "doc_id": doc_id},
        )
        self.collection = collection
        self.doc_id = doc_id
