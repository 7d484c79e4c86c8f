from abc import ABC, abstractmethod
from typing import Any, Dict, List

RawRecord = Dict[str, Any]

class SourceError(Exception):
    """Raised when a collection can't be fetched from its source."""
    pass

class UnauthorizedError(SourceError):
    """Raised when the source rejects our credentials."""
    pass

class SnapshotSource(ABC):
    """
    Abstract source of raw account, transaction and category records.

    Records are returned exactly as the source has them; converting and
    validating them is the job of the RecordNormalizer. This keeps the
    checks in one place whether the data comes from the API or a file.
    """

    @abstractmethod
    def fetch_accounts(self) -> List[RawRecord]:
        """
        Fetch every account record.

        Returns:
            List of raw account records

        Raises:
            SourceError: If the collection can't be fetched
            UnauthorizedError: If the credentials were rejected
        """
        pass

    @abstractmethod
    def fetch_transactions(self) -> List[RawRecord]:
        """
        Fetch transaction records.

        Returns:
            List of raw transaction records

        Raises:
            SourceError: If the collection can't be fetched
            UnauthorizedError: If the credentials were rejected
        """
        pass

    @abstractmethod
    def fetch_categories(self) -> List[RawRecord]:
        """
        Fetch category records.

        Returns:
            List of raw category records, empty if the source has none

        Raises:
            SourceError: If the collection can't be fetched
        """
        pass
