# data_enricher/routes/enrich_routes.py
import asyncio
from fastapi import APIRouter, File, UploadFile, Form, HTTPException
from fastapi.responses import JSONResponse, Response
from typing import Optional, Tuple
from ..config import OUTPUT_DELIMITER, OUTPUT_INCLUDE_BOM
from ..errors import CsvParseError, MissingInputError
from ..models import EnrichmentResponse, EnrichedRecord
from ..services.enrichment_service import EnrichmentRun, process_enrichment
from ..services.export_service import serialize_enriched, build_export_filename
from ..utils.helpers import (
    read_upload_with_limit, ensure_csv_filename, build_file_meta, is_truthy, get_current_utc_time
)
from ..utils.logger import get_logger, log_file_upload

router = APIRouter(prefix="/enrich", tags=["Enrichment"])
logger = get_logger("data_enricher.routes")


async def _read_inputs(
    master_file: Optional[UploadFile],
    work_file: Optional[UploadFile],
) -> Tuple[bytes, bytes]:
    """Reads both uploads concurrently; the pipeline starts only after both are in."""
    ensure_csv_filename(master_file)
    ensure_csv_filename(work_file)

    master_bytes, work_bytes = await asyncio.gather(
        read_upload_with_limit(master_file),
        read_upload_with_limit(work_file),
    )

    for upload, content in ((master_file, master_bytes), (work_file, work_bytes)):
        if upload is not None:
            log_file_upload(logger, upload.filename, len(content),
                            upload.content_type or "text/csv", True)
    return master_bytes, work_bytes


def _run_pipeline(master_bytes: bytes, work_bytes: bytes,
                  cpf_list: Optional[str]) -> EnrichmentRun:
    try:
        return process_enrichment(master_bytes, work_bytes, cpf_list)
    except MissingInputError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except CsvParseError as e:
        raise HTTPException(status_code=400, detail=e.message)


def _resolve_delimiter(delimiter: Optional[str]) -> str:
    if not delimiter:
        return OUTPUT_DELIMITER
    if delimiter in ("\\t", "tab"):
        return "\t"
    if len(delimiter) != 1:
        raise HTTPException(status_code=400, detail="Delimiter must be a single character")
    return delimiter


@router.post("")
async def enrich(
    master_file: Optional[UploadFile] = File(None),
    work_file: Optional[UploadFile] = File(None),
    cpf_list: Optional[str] = Form(None),
    preview_limit: int = Form(5),
    include_records: Optional[str] = Form("true"),
):
    master_bytes, work_bytes = await _read_inputs(master_file, work_file)
    run = _run_pipeline(master_bytes, work_bytes, cpf_list)

    records = [EnrichedRecord(**r) for r in run.records]
    resp = EnrichmentResponse(
        summary=run.summary,
        work_source=run.work_source,
        master_file=build_file_meta(master_file, master_bytes),
        work_file=build_file_meta(work_file, work_bytes) if work_file is not None else None,
        processed_at=get_current_utc_time(),
        preview=records[:max(preview_limit, 0)],
        records=records if is_truthy(include_records) else [],
    )
    return JSONResponse(resp.model_dump())


@router.post("/download")
async def enrich_download(
    master_file: Optional[UploadFile] = File(None),
    work_file: Optional[UploadFile] = File(None),
    cpf_list: Optional[str] = Form(None),
    delimiter: Optional[str] = Form(None),
    include_bom: Optional[str] = Form(None),
):
    output_delimiter = _resolve_delimiter(delimiter)
    bom = OUTPUT_INCLUDE_BOM if include_bom is None else is_truthy(include_bom)

    master_bytes, work_bytes = await _read_inputs(master_file, work_file)
    run = _run_pipeline(master_bytes, work_bytes, cpf_list)

    content = serialize_enriched(run.records, delimiter=output_delimiter, include_bom=bom)
    filename = build_export_filename()
    logger.info(
        f"Export ready | File: {filename} | Records: {len(run.records)} | "
        f"Matched: {run.matched}",
        extra={"payload": {"filename": filename, "records": len(run.records),
                           "matched": run.matched, "size_bytes": len(content)}}
    )

    return Response(
        content=content,
        media_type="text/csv; charset=utf-8",
        headers={
            "Content-Disposition": f'attachment; filename="{filename}"',
            "X-Total-Records": str(run.summary.total_records),
            "X-Matched-Records": str(run.summary.matched_records),
            "X-Match-Rate": str(run.summary.match_rate),
        },
    )
