from pathlib import Path
from typing import List, Optional

from finance_dashboard.parsers.base import RawSnapshot, SnapshotParser
from finance_dashboard.sources.base import RawRecord, SnapshotSource, SourceError

class FileSnapshotSource(SnapshotSource):
    """
    Snapshot source backed by an exported file.

    The file is parsed once, on first access, and every fetch is served
    from that parse.
    """

    def __init__(self, filepath: Path | str, parser: SnapshotParser):
        self.filepath = Path(filepath)
        self.parser = parser
        self._snapshot: Optional[RawSnapshot] = None

    @property
    def snapshot(self) -> RawSnapshot:
        """Lazy-load the parsed file"""
        if self._snapshot is None:
            try:
                self._snapshot = self.parser.parse(self.filepath)
            except (FileNotFoundError, ValueError) as e:
                raise SourceError(f"Could not read snapshot {self.filepath}: {e}") from e
        return self._snapshot

    def fetch_accounts(self) -> List[RawRecord]:
        return list(self.snapshot.accounts)

    def fetch_transactions(self) -> List[RawRecord]:
        return list(self.snapshot.transactions)

    def fetch_categories(self) -> List[RawRecord]:
        return list(self.snapshot.categories)
