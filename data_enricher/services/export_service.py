# data_enricher/services/export_service.py
import io
import csv
import datetime
from typing import Dict, List, Optional, Sequence
from ..config import OUTPUT_DELIMITER, OUTPUT_INCLUDE_BOM, OUTPUT_FIELDS, OUTPUT_FILENAME_PREFIX

UTF8_BOM = "\ufeff"


def serialize_enriched(
    records: List[Dict[str, str]],
    delimiter: str = OUTPUT_DELIMITER,
    include_bom: bool = OUTPUT_INCLUDE_BOM,
    fields: Sequence[str] = OUTPUT_FIELDS,
) -> bytes:
    """
    Renders enriched rows as delimited text: header row first, one record per
    line, UTF-8 with a leading BOM so spreadsheet tools pick the right encoding.
    """
    buffer = io.StringIO()
    writer = csv.DictWriter(
        buffer,
        fieldnames=list(fields),
        delimiter=delimiter,
        lineterminator="\r\n",
        extrasaction="ignore",
        restval="",
    )
    writer.writeheader()
    for record in records:
        writer.writerow(record)

    text = buffer.getvalue()
    if include_bom:
        text = UTF8_BOM + text
    return text.encode("utf-8")


def build_export_filename(prefix: str = OUTPUT_FILENAME_PREFIX,
                          today: Optional[datetime.date] = None) -> str:
    """dados_enriquecidos_YYYY-MM-DD.csv"""
    today = today or datetime.date.today()
    return f"{prefix}_{today.isoformat()}.csv"
