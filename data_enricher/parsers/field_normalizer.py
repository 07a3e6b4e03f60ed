# data_enricher/parsers/field_normalizer.py
"""Maps heuristically labeled input columns onto the canonical field names."""

import re
from abc import ABC, abstractmethod
from typing import Dict, List, Optional, Sequence
from ..config import (
    CPF_HEADER_TERMS, NAME_HEADER_LABELS, EMAIL_HEADER_TERMS, PHONE_HEADER_TERMS,
    CPF_CONTENT_TERMS, NAME_CONTENT_TERMS, POSITIONAL_LABELS, OUTPUT_FIELDS,
)
from ..utils.logger import get_logger

logger = get_logger("data_enricher.normalizer")

FieldMapping = Dict[str, str]
CanonicalRow = Dict[str, str]

_LABEL_NOISE_RE = re.compile(r"[\s\-_]+")


def clean_label(label: str) -> str:
    """Lower-cases a label and strips whitespace, '-' and '_'."""
    return _LABEL_NOISE_RE.sub("", str(label).lower())


def _contains_any(text: str, terms: Sequence[str]) -> bool:
    return any(term in text for term in terms)


class FieldMappingStrategy(ABC):
    """Base class for ways of deriving a FieldMapping from parsed rows."""

    name = "base"
    # True when the first row is a schema probe and must not be emitted
    consumes_probe_row = False

    @abstractmethod
    def build_mapping(self, rows: List[Dict[str, str]]) -> Optional[FieldMapping]:
        """
        Build the mapping for this batch of rows.

        Args:
            rows: Parsed rows, assumed to share the same labels

        Returns:
            FieldMapping, or None when the strategy cannot recognize anything
        """

    def label_for_unmapped(self, label: str) -> str:
        """Label used for a key the mapping does not know about."""
        return label


class HeaderDrivenStrategy(FieldMappingStrategy):
    """Recognizes canonical fields from the column labels alone."""

    name = "header"

    @staticmethod
    def canonical_name(label: str) -> Optional[str]:
        cleaned = clean_label(label)
        if _contains_any(cleaned, CPF_HEADER_TERMS):
            return "cpf"
        if cleaned in NAME_HEADER_LABELS:
            return "nome"
        if _contains_any(cleaned, EMAIL_HEADER_TERMS):
            return "email"
        if _contains_any(cleaned, PHONE_HEADER_TERMS):
            return "telefone"
        return None

    def build_mapping(self, rows: List[Dict[str, str]]) -> Optional[FieldMapping]:
        if not rows:
            return None
        mapping: FieldMapping = {}
        recognized = False
        for label in rows[0].keys():
            canonical = self.canonical_name(label)
            if canonical:
                recognized = True
            mapping[label] = canonical or clean_label(label)
        return mapping if recognized else None

    def label_for_unmapped(self, label: str) -> str:
        return normalize_header_label(label)


class ContentSniffedStrategy(FieldMappingStrategy):
    """
    Fallback for files whose header is missing or positional ("0", "1", ...).

    The first row is read as a header written into the data: its values are
    sniffed for field names and positional labels fill the gaps. That row is
    consumed and the mapping applies to the rows after it.
    """

    name = "content"
    consumes_probe_row = True

    def build_mapping(self, rows: List[Dict[str, str]]) -> Optional[FieldMapping]:
        if not rows:
            return None
        probe = rows[0]
        mapping: FieldMapping = {}
        for label, value in probe.items():
            sample = str(value or "").lower().strip()
            if _contains_any(sample, CPF_CONTENT_TERMS) or label in POSITIONAL_LABELS["cpf"]:
                mapping[label] = "cpf"
            elif _contains_any(sample, NAME_CONTENT_TERMS) or label in POSITIONAL_LABELS["nome"]:
                mapping[label] = "nome"
            elif _contains_any(sample, EMAIL_HEADER_TERMS) or label in POSITIONAL_LABELS["email"]:
                mapping[label] = "email"
            elif _contains_any(sample, PHONE_HEADER_TERMS) or label in POSITIONAL_LABELS["telefone"]:
                mapping[label] = "telefone"
            else:
                mapping[label] = clean_label(label)
        return mapping


def normalize_header_label(label: str) -> str:
    """Canonical name for a header label, or the cleaned label when none applies."""
    return HeaderDrivenStrategy.canonical_name(label) or clean_label(label)


DEFAULT_STRATEGIES: List[FieldMappingStrategy] = [HeaderDrivenStrategy(), ContentSniffedStrategy()]


def _warn_collisions(mapping: FieldMapping, strategy: FieldMappingStrategy) -> None:
    sources: Dict[str, List[str]] = {}
    for label, canonical in mapping.items():
        sources.setdefault(canonical, []).append(label)
    for canonical, labels in sources.items():
        if len(labels) > 1:
            logger.warning(
                f"Columns {labels} all map to '{canonical}'; the last one wins",
                extra={"payload": {"strategy": strategy.name, "field": canonical,
                                   "labels": labels}}
            )


def apply_mapping(row: Dict[str, str], mapping: FieldMapping,
                  strategy: FieldMappingStrategy) -> CanonicalRow:
    normalized_row: CanonicalRow = {}
    for key, value in row.items():
        mapped_key = mapping.get(key)
        if mapped_key is None:
            mapped_key = strategy.label_for_unmapped(key)
        normalized_row[mapped_key] = value
    return normalized_row


def normalize_field_names(
    rows: List[Dict[str, str]],
    strategies: Optional[Sequence[FieldMappingStrategy]] = None,
) -> List[CanonicalRow]:
    """
    Renames the columns of every row to canonical field names.

    Strategies are tried in order and the first one that returns a mapping is
    used for the whole batch. Never fails: if no strategy recognizes anything
    the rows come back with their labels untouched.
    """
    if not rows:
        return []

    for strategy in strategies or DEFAULT_STRATEGIES:
        mapping = strategy.build_mapping(rows)
        if mapping is None:
            logger.debug(f"Strategy '{strategy.name}' found no known columns")
            continue

        logger.info(
            f"Field mapping ({strategy.name}): {mapping}",
            extra={"payload": {"strategy": strategy.name, "mapping": mapping}}
        )
        _warn_collisions(mapping, strategy)

        if not strategy.consumes_probe_row:
            return [apply_mapping(row, mapping, strategy) for row in rows]

        if not any(canonical in OUTPUT_FIELDS for canonical in mapping.values()):
            logger.warning(
                f"Strategy '{strategy.name}' recognized no field in the first row; "
                f"dropping it anyway: {rows[0]}",
                extra={"payload": {"strategy": strategy.name, "dropped_row": dict(rows[0])}}
            )
        return [apply_mapping(row, mapping, strategy) for row in rows[1:]]

    logger.warning("No strategy recognized any column; labels kept as-is")
    return [dict(row) for row in rows]
