# data_enricher/models.py
from pydantic import BaseModel
from typing import Optional, List


class EnrichedRecord(BaseModel):
    cpf: str
    nome: str = ""
    email: str = ""
    telefone: str = ""


class FileMeta(BaseModel):
    name: str
    size_bytes: int
    size_mb: float
    content_type: str


class EnrichmentSummary(BaseModel):
    total_records: int
    matched_records: int
    unmatched_records: int
    match_rate: float
    match_level: str


class EnrichmentResponse(BaseModel):
    summary: EnrichmentSummary
    work_source: str
    master_file: FileMeta
    work_file: Optional[FileMeta] = None
    processed_at: str
    preview: List[EnrichedRecord]
    records: List[EnrichedRecord]
