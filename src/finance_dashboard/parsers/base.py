from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List

@dataclass
class RawSnapshot:
    """Records read from a snapshot file, not yet validated"""
    accounts: List[Dict[str, Any]] = field(default_factory=list)
    transactions: List[Dict[str, Any]] = field(default_factory=list)
    categories: List[Dict[str, Any]] = field(default_factory=list)

class SnapshotParser(ABC):
    """
    Abstract base class for all snapshot file parsers.
    
    This implements the Strategy pattern - each export format gets its own
    concrete parser that implements this interface.
    """

    # File extensions this parser understands, e.g. ('.json',)
    extensions: tuple = ()

    @abstractmethod
    def parse(self, filepath: Path | str) -> RawSnapshot:
        """
        Parse a snapshot file into raw records.
        
        Args:
            filepath: Path to the snapshot file
            
        Returns:
            RawSnapshot with the records found in the file
            
        Raises:
            FileNotFoundError: If file doesn't exist
            ValueError: If file format is invalid
        """
        pass

    @abstractmethod
    def validate_file(self, filepath: Path | str):
        """
        Validate that the file matches the expected format.
        
        Args:
            filepath: Path to the snapshot file

        Returns:
            Nothing if file is valid for this parser

        Raises:
            FileNotFoundError: If file doesn't exist
            ValueError: If file format is invalid
        """
        pass
