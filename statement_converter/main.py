import base64
import hashlib
from typing import List, Optional, Tuple

from fastapi import FastAPI, File, Form, HTTPException, UploadFile
from fastapi.responses import Response

from .config import get_settings
from .csv_io import decode_statement, encode_csv_bytes, output_filename
from .errors import ConverterError, NormalizationError
from .log import configure_logging, get_logger
from .models import ConvertResponse, FormatInfo, HealthResponse, NormalizedRecord, SourceFormat
from .normalize import normalize

settings = get_settings()
configure_logging(settings.log_level, json_output=settings.log_json)
logger = get_logger(__name__)

app = FastAPI(
    title="statement-converter",
    description="Convert Starling and Revolut CSV statements to FreeAgent's bank import format",
    version="0.1.0",
)


def _sha256_hex(data: bytes) -> str:
    return hashlib.sha256(data).hexdigest()


async def _convert_upload(
    file: UploadFile, bank: Optional[str]
) -> Tuple[SourceFormat, List[NormalizedRecord]]:
    if not (file.filename or "").lower().endswith(".csv"):
        raise HTTPException(status_code=422, detail="Only CSV files are supported")

    try:
        fmt = SourceFormat.parse(bank)
    except ConverterError as exc:
        raise HTTPException(status_code=exc.http_status, detail=exc.message)

    raw = await file.read()
    if len(raw) > settings.max_upload_size_bytes:
        raise HTTPException(
            status_code=413,
            detail=f"File exceeds the {settings.max_upload_size_mb} MB upload limit",
        )

    try:
        rows = decode_statement(raw, fmt)
    except ConverterError as exc:
        raise HTTPException(status_code=exc.http_status, detail=exc.message)
    if not rows:
        raise HTTPException(status_code=422, detail="CSV file is empty or invalid.")

    try:
        records = normalize(rows, fmt)
    except NormalizationError as exc:
        raise HTTPException(
            status_code=exc.http_status,
            detail=f"Error during {fmt.label} conversion: {exc.message}",
        )

    logger.info("upload_converted", filename=file.filename, source_format=fmt.value, rows=len(records))
    return fmt, records


@app.get("/health", response_model=HealthResponse)
def health():
    return {"ok": True}


@app.get("/formats", response_model=List[FormatInfo])
def formats():
    return [
        {"id": fmt, "label": fmt.label, "required_columns": list(fmt.required_columns)}
        for fmt in SourceFormat
    ]


@app.post("/convert", response_model=ConvertResponse)
async def convert(file: UploadFile = File(...), bank: Optional[str] = Form(None)):
    fmt, records = await _convert_upload(file, bank)

    encoded = encode_csv_bytes(records, settings.output_encoding)
    return {
        "source_format": fmt,
        "filename": output_filename(file.filename),
        "rows": len(records),
        "records": records,
        "normalized_csv": {
            "sha256": _sha256_hex(encoded),
            "encoding": settings.output_encoding,
            "content_b64": base64.b64encode(encoded).decode("ascii"),
        },
    }


@app.post("/convert/download")
async def convert_download(file: UploadFile = File(...), bank: Optional[str] = Form(None)):
    _, records = await _convert_upload(file, bank)

    return Response(
        content=encode_csv_bytes(records, settings.output_encoding),
        media_type=f"text/csv; charset={settings.output_encoding}",
        headers={"Content-Disposition": f'attachment; filename="{output_filename(file.filename)}"'},
    )
