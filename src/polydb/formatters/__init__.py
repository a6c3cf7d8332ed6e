"""Output formatters for polydb result sets."""

from polydb.formatters.base import Formatter, FormatterRegistry, registry
from polydb.formatters.csv import CSVFormatter
from polydb.formatters.json import JSONFormatter
from polydb.formatters.table import TableFormatter

__all__ = [
    "CSVFormatter",
    "Formatter",
    "FormatterRegistry",
    "JSONFormatter",
    "TableFormatter",
    "registry",
]
