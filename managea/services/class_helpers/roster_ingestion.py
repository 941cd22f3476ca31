# /managea/services/class_helpers/roster_ingestion.py

import logging
from typing import Dict

from ..database_service import DatabaseService
from ..exceptions import NotFoundError, ValidationError
from . import crud, file_processors

logger = logging.getLogger(__name__)


def import_students_from_upload(
    class_id: str,
    file_bytes: bytes,
    db: DatabaseService,
    filename: str = "",
    content_type: str = "",
) -> Dict:
    """
    Adds every named row of an uploaded roster to an existing class in a single
    atomic write. Rows without a name are skipped by the parser.
    """
    db_class = db.get_class_by_id(class_id)
    if not db_class:
        raise NotFoundError(f"Class with ID {class_id} not found")

    is_excel = file_processors.is_excel_upload(filename, content_type)
    students_to_import = file_processors.extract_students_from_tabular(file_bytes, is_excel=is_excel)
    if not students_to_import:
        raise ValidationError('No valid student names found. Use "Name" column header.')

    created = crud.add_students_batch(students_to_import, class_id=class_id, class_name=db_class.name, db=db)
    logger.info("Imported %d students into class %s from %s", len(created), class_id, filename or "upload")

    return {
        "message": f"{len(created)} student{'s' if len(created) != 1 else ''} imported",
        "class_id": class_id,
        "imported": len(created),
    }
