# data_enricher/parsers/csv_parser.py
import io
import csv
import time
from typing import List, Dict, Optional, Union
from ..config import CANDIDATE_DELIMITERS
from ..errors import CsvParseError, ParseErrorKind
from ..utils.logger import get_logger, log_parsing

logger = get_logger("data_enricher.parser")

RawRow = Dict[str, str]

ERROR_PREFIX = "Erro ao processar CSV"


def decode_content(content: Union[bytes, str]) -> str:
    """Decodes uploaded bytes as UTF-8, dropping a leading BOM."""
    if isinstance(content, bytes):
        return content.decode("utf-8-sig", errors="replace")
    if content.startswith("\ufeff"):
        return content[1:]
    return content


def read_pasted_list(text: Union[bytes, str]) -> str:
    """Manually entered identifier lists need no processing beyond decoding."""
    return decode_content(text)


def normalize_csv_content(content: str) -> str:
    """
    Normalizes CSV content exported with entire lines in quotes.
    - If the line starts and ends with quotes, remove the outer pair.
    - Converts internal double quotes ("") to single quotes (").
    Keeps the line intact when it's not "doubly" quoted.
    """
    fixed_lines = []
    for ln in content.splitlines():
        if len(ln) > 1 and ln.startswith('"') and ln.endswith('"'):
            fixed_lines.append(ln[1:-1].replace('""', '"'))
        else:
            fixed_lines.append(ln)
    return "\n".join(fixed_lines)


def _count_outside_quotes(line: str, char: str) -> int:
    count = 0
    in_quotes = False
    for c in line:
        if c == '"':
            in_quotes = not in_quotes
        elif c == char and not in_quotes:
            count += 1
    return count


def _first_line(text: str) -> str:
    for ln in text.splitlines():
        if ln.strip():
            return ln
    return ""


def detect_delimiter(line: str, candidates: Optional[List[str]] = None) -> str:
    """
    Picks the candidate that occurs most often outside quotes in `line`.
    A line with no candidate at all is a single column (comma).
    Two candidates tied at the top make the file ambiguous.
    """
    candidates = candidates or CANDIDATE_DELIMITERS
    counts = {c: _count_outside_quotes(line, c) for c in candidates}
    best = max(counts.values()) if counts else 0
    if best == 0:
        return ","

    tied = [c for c, n in counts.items() if n == best]
    if len(tied) > 1:
        raise CsvParseError(
            f"{ERROR_PREFIX}: Unable to auto-detect delimiting character "
            f"(candidates {', '.join(repr(c) for c in tied)} appear {best} times each)",
            kind=ParseErrorKind.STRUCTURAL,
            line=1
        )
    return tied[0]


def _looks_line_quoted(line: str, candidates: List[str]) -> bool:
    """
    Heuristic: True if the whole header line is wrapped in quotes and only has
    delimiters inside them, classic symptom of a spreadsheet export gone wrong.
    """
    stripped = line.strip()
    if len(stripped) < 2 or not (stripped.startswith('"') and stripped.endswith('"')):
        return False
    if any(_count_outside_quotes(stripped, c) for c in candidates):
        return False
    return any(c in stripped for c in candidates)


def is_single_column(content: Union[bytes, str], candidates: Optional[List[str]] = None) -> bool:
    """True when the first non-blank line has no candidate delimiter outside quotes."""
    candidates = candidates or CANDIDATE_DELIMITERS
    header_line = _first_line(decode_content(content))
    if _looks_line_quoted(header_line, candidates):
        return False
    return not any(_count_outside_quotes(header_line, c) for c in candidates)


def _unique_labels(labels: List[str]) -> List[str]:
    """Suffixes repeated header labels so no column overwrites another."""
    seen: Dict[str, int] = {}
    unique = []
    for label in labels:
        if label in seen:
            seen[label] += 1
            unique.append(f"{label}_{seen[label]}")
        else:
            seen[label] = 0
            unique.append(label)
    return unique


def _is_blank(row: List[str]) -> bool:
    return all(not (v or "").strip() for v in row)


def _row_to_dict(row: List[str], labels: List[str]) -> RawRow:
    width = len(labels)
    record = {label: (row[i] if i < len(row) else "") for i, label in enumerate(labels)}
    for extra_index, value in enumerate(row[width:]):
        record[f"_extra_{extra_index}"] = value
    return record


def parse_csv(
    content: Union[bytes, str],
    has_header: bool = True,
    delimiter: Optional[str] = None,
    strict_shape: bool = False,
    candidates: Optional[List[str]] = None,
) -> List[RawRow]:
    """
    Parses delimited text into a list of dicts keyed by column label.

    - The first non-blank line is the header (labels trimmed) unless
      has_header is False, in which case labels are positional ("0", "1", ...).
    - Blank lines are skipped.
    - Malformed quoting, an ambiguous delimiter or a file without data rows
      raise CsvParseError(kind=STRUCTURAL).
    - Rows with more or fewer fields than the header are logged and kept:
      missing fields become "", surplus fields go under "_extra_<n>".
      With strict_shape=True the first such row raises CsvParseError(kind=ROW_SHAPE).
    """
    start_time = time.time()
    candidates = candidates or CANDIDATE_DELIMITERS
    text = decode_content(content)

    header_line = _first_line(text)
    if not header_line:
        error = f"{ERROR_PREFIX}: arquivo vazio"
        log_parsing(logger, "csv", 0, time.time() - start_time, False, error)
        raise CsvParseError(error, kind=ParseErrorKind.STRUCTURAL)

    if delimiter is None:
        if _looks_line_quoted(header_line, candidates):
            logger.warning("Lines are wrapped in quotes, unwrapping before parsing")
            text = normalize_csv_content(text)
            header_line = _first_line(text)
        try:
            delimiter = detect_delimiter(header_line, candidates)
        except CsvParseError as e:
            log_parsing(logger, "csv", 0, time.time() - start_time, False, e.message)
            raise

    reader = csv.reader(io.StringIO(text, newline=""), delimiter=delimiter, strict=True)

    rows: List[RawRow] = []
    labels: Optional[List[str]] = None
    shape_warnings = 0
    try:
        for raw in reader:
            if _is_blank(raw):
                continue

            if labels is None:
                if has_header:
                    labels = _unique_labels([h.strip() for h in raw])
                    continue
                labels = [str(i) for i in range(len(raw))]

            if len(raw) != len(labels):
                code = "TooManyFields" if len(raw) > len(labels) else "TooFewFields"
                message = (
                    f"Row {reader.line_num}: expected {len(labels)} fields "
                    f"but parsed {len(raw)}"
                )
                if strict_shape:
                    raise CsvParseError(
                        f"{ERROR_PREFIX}: {message}",
                        kind=ParseErrorKind.ROW_SHAPE,
                        line=reader.line_num
                    )
                shape_warnings += 1
                logger.warning(
                    f"Row shape mismatch | {message}",
                    extra={"payload": {"code": code, "row": reader.line_num,
                                       "expected": len(labels), "found": len(raw)}}
                )

            rows.append(_row_to_dict(raw, labels))
    except csv.Error as e:
        error = f"{ERROR_PREFIX}: {e} (line {reader.line_num})"
        log_parsing(logger, "csv", 0, time.time() - start_time, False, error)
        raise CsvParseError(error, kind=ParseErrorKind.STRUCTURAL, line=reader.line_num) from e

    if not rows:
        error = f"{ERROR_PREFIX}: nenhum registro encontrado"
        log_parsing(logger, "csv", 0, time.time() - start_time, False, error)
        raise CsvParseError(error, kind=ParseErrorKind.STRUCTURAL)

    logger.debug(
        f"Parsed header {labels} with delimiter {delimiter!r}",
        extra={"payload": {"labels": labels, "delimiter": delimiter,
                           "row_shape_warnings": shape_warnings}}
    )
    log_parsing(logger, "csv", len(rows), time.time() - start_time, True)
    return rows


def parse_cpf_list(text: Union[bytes, str]) -> List[Dict[str, str]]:
    """One work record per non-blank line of a pasted identifier list."""
    return [
        {"cpf": line.strip()}
        for line in read_pasted_list(text).split("\n")
        if line.strip()
    ]
