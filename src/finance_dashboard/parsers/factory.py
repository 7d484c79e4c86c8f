import importlib
from pathlib import Path
from typing import Optional, Dict, Type, Any
from finance_dashboard.parsers.base import SnapshotParser
from finance_dashboard.config.settings import ConfigLoader

class ParserFactory:
    """
    Factory for creating snapshot parsers.

    Uses a registry pattern to map snapshot format identifiers to parser classes.
    """

    _locked = False
    _registry: Dict[str, Type[SnapshotParser]] = {}

    @classmethod
    def register(cls, format_name: str, parser_class: Type[SnapshotParser]) -> None:
        """
        Register a parser for a snapshot format

        Args:
            format_name: Unique identifier for the format (e.g, 'json', 'excel')
            parser_class: The parser class
        
        Raises:
            ValueError: If parser is already registered
            TypeError: If parser_class doesn't inherit from SnapshotParser
            RuntimeError: If the parser registry is locked

        Example:
            ParserFactory.register('json', JsonSnapshotParser)
        """

        if cls._locked:
            raise RuntimeError("Registry is locked, cannot add more parsers")
        
        if format_name in cls._registry:
            raise ValueError(f"Parser for '{format_name}' is already registered")
        
        if not isinstance(parser_class, type) or not issubclass(parser_class, SnapshotParser):
            raise TypeError(f"{parser_class} must inherit from SnapshotParser")
        
        cls._registry[format_name] = parser_class

    @classmethod
    def lock_registry(cls):
        """Prevent further registration (call after app initialization)"""
        cls._locked = True

    @classmethod
    def create_parser(cls, format_name: str) -> SnapshotParser:
        """
        Create a parser instance for the specified format.

        Args:
            format_name: Snapshot format identifier (e.g., 'json', 'excel')

        Returns:
            Instantiated parser ready to use

        Raises:
            ValueError: If no parser registered for this format

        Example:
            parser = ParserFactory.create_parser('json')
            snapshot = parser.parse('snapshot.json')
        """
        if format_name not in cls._registry:
            available = ', '.join(cls._registry.keys())
            raise ValueError(
                f"No parser registered for '{format_name}'. "
                f"Available parsers: {available}"
            )
        
        return cls._registry[format_name]()

    @classmethod
    def format_for_path(cls, filepath: Path | str) -> str:
        """
        Pick the registered format whose parser handles this file extension.

        Raises:
            ValueError: If no registered parser handles the extension
        """
        suffix = Path(filepath).suffix.lower()
        for format_name, parser_class in cls._registry.items():
            if suffix in parser_class.extensions:
                return format_name
        raise ValueError(f"No parser registered for '{suffix}' files")
    
    @classmethod
    def get_available_formats(cls) -> list[str]:
        """Return list of all registered format identifiers"""
        return list(cls._registry.keys())

    @classmethod
    def load_parsers_from_config(
        cls, 
        config: Optional[Dict[str, Any]] = None
    ) -> None:
        """
        Load and register parsers from configuration
        
        Args:
            config: Optional config dict. If None, loads from ConfigLoader.
                Useful for testing with custom configs.

            Example (production):
                ParserFactory.load_parsers_from_config()

            Example (testing): 
                test_config = {"parsers": [...]}
                ParserFactory.load_parsers_from_config(config=test_config)
        """
        if config is None:
            config = ConfigLoader.load_parsers_config()

        for parser_config in config['parsers']:
            module_path, class_name = str(parser_config['class']).rsplit('.', 1)
            module = importlib.import_module(module_path)
            parser_class = getattr(module, class_name)

            cls.register(parser_config['format'], parser_class)

        cls.lock_registry()
