# /managea/routers/reports_router.py

import io

from fastapi import APIRouter, Depends
from fastapi.responses import StreamingResponse

from ..config import REPORT_TITLE
from ..services import pdf_export_service
from ..services.database_service import DatabaseService, get_db_service

router = APIRouter()


@router.get("/fines.pdf", summary="Export All Student Fines as PDF", response_class=StreamingResponse)
def export_all_fines(db: DatabaseService = Depends(get_db_service)):
    pdf_bytes = pdf_export_service.build_roster_report(db.get_all_students(), title=REPORT_TITLE)
    file_stem = f"{REPORT_TITLE.replace(' ', '_').lower()}-fines"
    return StreamingResponse(io.BytesIO(pdf_bytes), media_type="application/pdf", headers=pdf_export_service.attachment_headers(file_stem))
