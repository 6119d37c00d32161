"""Remote document store protocol contract."""

from dataclasses import dataclass
from typing import Any, Dict, List, Mapping, Optional, Protocol, Sequence, runtime_checkable


class _ServerTimestamp:
    """Sentinel resolved to the store's own clock at write time."""
    
    _instance: Optional["_ServerTimestamp"] = None
    
    def __new__(cls) -> "_ServerTimestamp":
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance
    
    def __repr__(self) -> str:
        return "SERVER_TIMESTAMP"


SERVER_TIMESTAMP = _ServerTimestamp()


@dataclass(frozen=True)
class FieldFilter:
    """Query predicate on a single (possibly dotted) field."""
    
    field: str
    op: str
    value: Any
    
    SUPPORTED_OPS = ("==", "!=", "<", "<=", ">", ">=", "in")
    
    def __post_init__(self) -> None:
        if self.op not in self.SUPPORTED_OPS:
            raise ValueError(f"Unsupported filter operator: {self.op}")


@dataclass(frozen=True)
class DocumentSnapshot:
    """A document as returned by reads and queries."""
    
    id: str
    data: Dict[str, Any]


@runtime_checkable
class WriteBatch(Protocol):
    """Atomic multi-document update."""
    
    def update(self, collection: str, doc_id: str, fields: Mapping[str, Any]) -> "WriteBatch":
        """Queue a field update; nothing is written until ``commit``."""
        ...
    
    async def commit(self) -> None:
        """Apply every queued update atomically, or none of them.
        
        Raises:
            DocumentNotFound: If any queued document does not exist
            TransientStoreError: On transport failure
        """
        ...


@runtime_checkable
class DocumentStore(Protocol):
    """Protocol for the remote document database.
    
    Defines ONLY the operations the session subsystem relies on.
    Field names in ``update`` may be dot-paths (``"tokenHashes.access"``)
    addressing one key of a nested map. ``SERVER_TIMESTAMP`` values are
    replaced by the store's clock.
    """
    
    async def get(self, collection: str, doc_id: str) -> Optional[DocumentSnapshot]:
        """Read a document, or None if it does not exist."""
        ...
    
    async def set(
        self,
        collection: str,
        doc_id: str,
        data: Mapping[str, Any],
        merge: bool = False
    ) -> None:
        """Create or overwrite a document; ``merge`` deep-merges into an existing one."""
        ...
    
    async def update(self, collection: str, doc_id: str, fields: Mapping[str, Any]) -> None:
        """Partially update an existing document.
        
        Raises:
            DocumentNotFound: If the document does not exist
        """
        ...
    
    async def query(
        self,
        collection: str,
        filters: Sequence[FieldFilter] = (),
        order_by: Optional[str] = None,
        descending: bool = False
    ) -> List[DocumentSnapshot]:
        """Return documents matching every filter, optionally ordered by one field."""
        ...
    
    def batch(self) -> WriteBatch:
        """Start an atomic write batch."""
        ...
