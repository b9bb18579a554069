from dataclasses import asdict

from fastapi import FastAPI, HTTPException
from finding_review.config import setup_logging
from finding_review.errors import ErrorKind
from finding_review.formatting import format_internal_repr
from finding_review.migration import export_archive, migrate
from finding_review.parsers import parse_tagged_text
from finding_review.schemas import (
    ExportRequest,
    ExportResponse,
    FormatRequest,
    FormatResponse,
    MigrateRequest,
    MigrateResponse,
    MigrationErrorOut,
    ParseRequest,
    ParseResponse,
)

logger = setup_logging()

app = FastAPI(title="Finding Review API")


# ----- Endpoints -----
@app.get("/")
def health_check():
    return {"status": "ok"}


@app.post("/parse", response_model=ParseResponse)
def parse_text(request: ParseRequest):
    result = parse_tagged_text(request.text, mode=request.mode)
    if not result.ok:
        logger.info("Rejected tagged text: %s", result.error.describe())
        raise HTTPException(status_code=422, detail=result.error.to_dict())
    return ParseResponse(labels=result.value, warnings=result.warnings)


@app.post("/format", response_model=FormatResponse)
def format_labels(request: FormatRequest):
    return FormatResponse(text=format_internal_repr(request.labels, request.mode))


@app.post("/migrate", response_model=MigrateResponse)
def migrate_archive(request: MigrateRequest):
    result = migrate(request.archive, mode=request.mode)
    errors = [MigrationErrorOut(**asdict(e)) for e in result.errors]

    # ----- Whole archive rejected -----
    if any(e.kind == ErrorKind.INVALID_ARCHIVE_SHAPE.value for e in errors):
        raise HTTPException(status_code=400, detail=[e.model_dump() for e in errors])

    logger.info("Migrated archive: %s", result.summary())
    return MigrateResponse(migrated=result.migrated, errors=errors)


@app.post("/export", response_model=ExportResponse)
def export_labels(request: ExportRequest):
    return ExportResponse(archive=export_archive(request.labels))
