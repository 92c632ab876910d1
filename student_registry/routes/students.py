from __future__ import annotations

import logging
from typing import List, Optional

from fastapi import APIRouter, Depends, File, Query, Request, UploadFile, status

from ..errors import ValidationError
from ..middleware.authorization import Operation, require
from ..schemas import (
    ImportResponse,
    MessageResponse,
    StatsResponse,
    Student,
    StudentCreate,
    StudentUpdate,
)
from ..services.bulk_import import BulkImporter, spool_upload
from ..services.student_service import StudentService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/students", tags=["Students"])


def get_service(request: Request) -> StudentService:
    return request.app.state.student_service


def get_importer(request: Request) -> BulkImporter:
    return request.app.state.bulk_importer


@router.post(
    "",
    status_code=status.HTTP_201_CREATED,
    response_model=MessageResponse,
    dependencies=[Depends(require(Operation.CREATE))],
)
def add_student(payload: StudentCreate, service: StudentService = Depends(get_service)):
    student_id = service.add_student(payload.model_dump())
    logger.info(f"Student {student_id} added")
    return MessageResponse(message="Student added successfully")


@router.get(
    "",
    response_model=List[Student],
    dependencies=[Depends(require(Operation.LIST))],
)
def list_students(service: StudentService = Depends(get_service)):
    return service.list_students()


@router.get(
    "/search",
    response_model=List[Student],
    dependencies=[Depends(require(Operation.SEARCH))],
)
def search_students(
    q: Optional[str] = Query(None, description="Case-insensitive substring matched against every field"),
    service: StudentService = Depends(get_service),
):
    return service.search(q)


@router.get(
    "/stats",
    response_model=StatsResponse,
    dependencies=[Depends(require(Operation.STATS))],
)
def student_stats(service: StudentService = Depends(get_service)):
    return service.stats()


@router.post(
    "/upload",
    status_code=status.HTTP_201_CREATED,
    response_model=ImportResponse,
    dependencies=[Depends(require(Operation.IMPORT))],
)
def upload_students(
    request: Request,
    file: Optional[UploadFile] = File(None),
    importer: BulkImporter = Depends(get_importer),
):
    if file is None:
        logger.error("No file uploaded.")
        raise ValidationError(
            'No file uploaded. Please attach a CSV file with the field name "file".'
        )

    path = spool_upload(file.file, request.app.state.settings.upload_dir)
    logger.info(f"Importing {file.filename or 'upload'} from {path}")
    summary = importer.import_file(path)
    return ImportResponse(
        message="CSV data uploaded successfully",
        imported=summary.imported,
        skipped=summary.skipped,
    )


@router.get(
    "/{student_id}",
    response_model=Student,
    dependencies=[Depends(require(Operation.READ))],
)
def get_student(student_id: str, service: StudentService = Depends(get_service)):
    return service.get_student(student_id)


@router.put(
    "/{student_id}",
    response_model=MessageResponse,
    dependencies=[Depends(require(Operation.UPDATE))],
)
def update_student(
    student_id: str,
    payload: StudentUpdate,
    service: StudentService = Depends(get_service),
):
    service.update_student(student_id, payload.model_dump())
    return MessageResponse(message="Student updated successfully")


@router.delete(
    "/{student_id}",
    response_model=MessageResponse,
    dependencies=[Depends(require(Operation.DELETE))],
)
def delete_student(student_id: str, service: StudentService = Depends(get_service)):
    service.delete_student(student_id)
    return MessageResponse(message="Student deleted successfully")
