from fastapi import APIRouter, Depends
from fastapi.responses import StreamingResponse
from sqlalchemy.orm import Session

from greep.api.deps import get_db, get_operator
from greep.models.user import User
from greep.services.exports import export_filename, sheets_to_workbook
from greep.services.monthly_report import BACKUP_COLUMNS, backup_rows
from greep.services.records import load_collections


router = APIRouter(prefix="/exports", tags=["exports"])


@router.get("/backup")
def export_backup(
    db: Session = Depends(get_db),
    operator: User = Depends(get_operator),
):
    data = load_collections(db)
    rows = backup_rows(data.users, data.payments, data.expenses, data.payouts)
    workbook = sheets_to_workbook(
        {name.title(): (BACKUP_COLUMNS[name], rows[name]) for name in BACKUP_COLUMNS}
    )
    filename = export_filename("greep-backup", "xlsx")
    return StreamingResponse(
        iter([workbook]),
        media_type="application/vnd.openxmlformats-officedocument.spreadsheetml.sheet",
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )
