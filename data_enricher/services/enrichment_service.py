# data_enricher/services/enrichment_service.py
import re
import time
from dataclasses import dataclass
from enum import Enum
from typing import Dict, List, Optional, Tuple, Union
from ..config import DUPLICATE_KEY_POLICY, HIGH_MATCH_RATE
from ..errors import CsvParseError, MissingInputError, ParseErrorKind
from ..models import EnrichmentSummary
from ..parsers.csv_parser import ERROR_PREFIX, is_single_column, parse_csv, parse_cpf_list
from ..parsers.field_normalizer import HeaderDrivenStrategy, normalize_field_names
from ..utils.logger import get_logger, log_enrichment
from ..utils.performance_monitor import monitor_operation

logger = get_logger("data_enricher.join")

Record = Dict[str, str]

_CPF_NOISE_RE = re.compile(r"[.\-\s]")


class DuplicateKeyPolicy(str, Enum):
    """Which master row keeps a CPF when several normalize to the same key."""
    KEEP_FIRST = "keep_first"
    KEEP_LAST = "keep_last"


def normalize_cpf(cpf: Optional[str]) -> str:
    """Removes dots, dashes and whitespace so formatted and bare CPFs compare equal."""
    if not cpf:
        return ""
    return _CPF_NOISE_RE.sub("", str(cpf)).strip()


def build_master_lookup(
    master: List[Record],
    duplicate_policy: DuplicateKeyPolicy = DuplicateKeyPolicy.KEEP_FIRST,
) -> Dict[str, Record]:
    """Indexes master rows by normalized CPF; rows without a CPF are skipped."""
    lookup: Dict[str, Record] = {}
    positions: Dict[str, int] = {}
    skipped = 0

    for index, record in enumerate(master):
        key = normalize_cpf(record.get("cpf"))
        if not key:
            skipped += 1
            continue

        if key in lookup:
            if duplicate_policy == DuplicateKeyPolicy.KEEP_FIRST:
                logger.warning(
                    f"Duplicate CPF {key} in master row {index}; keeping row {positions[key]}",
                    extra={"payload": {"cpf": key, "kept_row": positions[key],
                                       "discarded_row": index}}
                )
                continue
            logger.warning(
                f"Duplicate CPF {key} in master row {index}; replacing row {positions[key]}",
                extra={"payload": {"cpf": key, "kept_row": index,
                                   "discarded_row": positions[key]}}
            )

        lookup[key] = record
        positions[key] = index

    if skipped:
        logger.info(
            f"{skipped} master rows without CPF were not indexed",
            extra={"payload": {"skipped": skipped}}
        )
    return lookup


def enrich_data(
    master: List[Record],
    work: List[Record],
    work_has_names: Optional[bool] = None,
    duplicate_policy: DuplicateKeyPolicy = DuplicateKeyPolicy.KEEP_FIRST,
) -> Tuple[List[Record], int]:
    """
    Joins work rows against master rows on the normalized CPF.

    Every work row yields exactly one enriched row, in input order. The work
    row's CPF is kept as typed; `nome` comes from the work row when the work
    input carries names (auto-detected when work_has_names is None) and is
    empty otherwise. `email` and `telefone` come from the matched master row,
    or are empty on a miss.

    Returns:
        (enriched rows, number of work rows whose CPF was found)
    """
    start_time = time.time()
    if work_has_names is None:
        work_has_names = any("nome" in record for record in work)

    master_lookup = build_master_lookup(master, duplicate_policy)
    logger.debug(
        f"Master lookup built with {len(master_lookup)} keys from {len(master)} rows",
        extra={"payload": {"master_rows": len(master), "lookup_size": len(master_lookup),
                           "work_rows": len(work), "work_has_names": work_has_names}}
    )

    matched_records = 0
    enriched: List[Record] = []
    for record in work:
        master_record = master_lookup.get(normalize_cpf(record.get("cpf")))
        if master_record is not None:
            matched_records += 1

        enriched.append({
            "cpf": record.get("cpf") or "",
            "nome": (record.get("nome") or "") if work_has_names else "",
            "email": (master_record.get("email") or "") if master_record else "",
            "telefone": (master_record.get("telefone") or "") if master_record else "",
        })

    log_enrichment(logger, len(work), matched_records, len(master_lookup),
                   time.time() - start_time)
    return enriched, matched_records


def summarize_enrichment(total: int, matched: int) -> EnrichmentSummary:
    """Match statistics as shown on the results panel."""
    match_rate = round(matched / total * 100, 1) if total > 0 else 0.0
    return EnrichmentSummary(
        total_records=total,
        matched_records=matched,
        unmatched_records=total - matched,
        match_rate=match_rate,
        match_level="high" if match_rate > HIGH_MATCH_RATE else "low",
    )


@dataclass
class EnrichmentRun:
    records: List[Record]
    matched: int
    summary: EnrichmentSummary
    work_source: str


def _load_single_column(content: Union[bytes, str]) -> List[Record]:
    """
    A lone column is a CPF list. Its first line is a header only when it is a
    known field label, otherwise every line is a value.
    """
    rows = parse_csv(content, has_header=False)
    first = rows[0]["0"].strip()
    field = HeaderDrivenStrategy.canonical_name(first)
    if field is None:
        logger.info("Work file has a single unlabeled column, reading it as a CPF list")
        return [{"cpf": row["0"].strip()} for row in rows if row["0"].strip()]

    data = rows[1:]
    if not data:
        error = f"{ERROR_PREFIX}: nenhum registro encontrado"
        logger.error(error)
        raise CsvParseError(error, kind=ParseErrorKind.STRUCTURAL)
    if field != "cpf":
        logger.warning(f"Work file has a single '{first}' column and no CPF column; nothing will match")
    return [{field: row["0"]} for row in data]


def _load_work_file(content: Union[bytes, str]) -> List[Record]:
    """Parses a work file; a single column is read as a plain CPF list."""
    if is_single_column(content):
        return _load_single_column(content)
    work = normalize_field_names(parse_csv(content))
    if not any("cpf" in record for record in work):
        logger.warning("Work file has no recognizable CPF column; nothing will match")
    return work


def process_enrichment(
    master_content: Optional[Union[bytes, str]],
    work_content: Optional[Union[bytes, str]] = None,
    cpf_text: Optional[str] = None,
    duplicate_policy: Optional[DuplicateKeyPolicy] = None,
) -> EnrichmentRun:
    """
    Runs the whole pipeline: parse and normalize the master file, build work
    records from the work file (preferred) or the pasted CPF list, then join.

    Raises:
        MissingInputError: master file or work input missing
        CsvParseError: a file could not be parsed
    """
    if not master_content:
        raise MissingInputError("Selecione o arquivo mestre antes de processar.")
    if not work_content and not (cpf_text or "").strip():
        raise MissingInputError("Envie o arquivo de trabalho ou a lista de CPFs antes de processar.")

    policy = duplicate_policy or DuplicateKeyPolicy(DUPLICATE_KEY_POLICY)

    with monitor_operation("enrichment"):
        master = normalize_field_names(parse_csv(master_content))

        if work_content:
            work = _load_work_file(work_content)
            work_source = "file"
        else:
            work = parse_cpf_list(cpf_text)
            work_source = "list"

        enriched, matched = enrich_data(master, work, duplicate_policy=policy)

    return EnrichmentRun(
        records=enriched,
        matched=matched,
        summary=summarize_enrichment(len(enriched), matched),
        work_source=work_source,
    )
