# data_enricher/errors.py
from enum import Enum
from typing import Optional


class ParseErrorKind(str, Enum):
    """Kinds of CSV parse failures."""
    STRUCTURAL = "structural"
    ROW_SHAPE = "row_shape"


class CsvParseError(Exception):
    """
    Raised when an uploaded file cannot be turned into rows.

    STRUCTURAL errors (bad quoting, ambiguous delimiter, no data) always abort.
    ROW_SHAPE errors are only raised when the caller asked for strict shape checks;
    otherwise ragged rows are logged and kept.
    """

    def __init__(self, message: str, kind: ParseErrorKind = ParseErrorKind.STRUCTURAL,
                 line: Optional[int] = None):
        super().__init__(message)
        self.message = message
        self.kind = kind
        self.line = line

    @property
    def is_structural(self) -> bool:
        return self.kind == ParseErrorKind.STRUCTURAL


class MissingInputError(ValueError):
    """Raised by the orchestrator when the master file or the work input is absent."""
