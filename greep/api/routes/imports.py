from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session

from greep.api.deps import get_db, get_operator
from greep.models.user import User
from greep.schemas.imports import CsvImportRequest, CsvImportResponse
from greep.services.audit import log_audit
from greep.services.imports import UnknownImportType, import_rows, parse_csv


router = APIRouter(prefix="/imports", tags=["imports"])


@router.post("/csv", response_model=CsvImportResponse)
def import_csv(
    payload: CsvImportRequest,
    db: Session = Depends(get_db),
    operator: User = Depends(get_operator),
) -> CsvImportResponse:
    try:
        parsed = parse_csv(payload.content)
    except UnknownImportType as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc

    outcome = import_rows(db, parsed, actor=operator)
    if payload.dry_run:
        db.rollback()
        return CsvImportResponse(
            entity_type=outcome.entity_type,
            dry_run=True,
            parsed=outcome.parsed,
            created=0,
            skipped=outcome.skipped,
            record_ids=[],
        )

    log_audit(
        db,
        actor=operator,
        action="import.csv",
        entity_type=outcome.entity_type,
        entity_id=f"{outcome.created} rows",
        after_state={"record_ids": outcome.record_ids, "skipped": outcome.skipped},
    )
    db.commit()
    return CsvImportResponse(
        entity_type=outcome.entity_type,
        dry_run=False,
        parsed=outcome.parsed,
        created=outcome.created,
        skipped=outcome.skipped,
        record_ids=outcome.record_ids,
    )
