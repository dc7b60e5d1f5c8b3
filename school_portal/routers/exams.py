# school_portal/routers/exams.py
from typing import List, Optional
from uuid import UUID
from datetime import date
from fastapi import APIRouter, Depends, Query
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from ..core.database import get_db
from ..core.dependencies import acting_teacher, get_current_session, require_admin, require_staff
from ..core.exceptions import NotFoundError, PortalException
from ..core.security import SessionData
from ..models.exam import Exam, ExamResult, ExamSchedule, ExamStatus
from ..models.student import Student
from ..models.teacher import Teacher
from ..models.user import UserRole
from ..schemas.exam_schemas import ExamCreate, ExamResultsSave, ExamScheduleCreate, ExamUpdate
from ..services.exam_service import ExamService, percentage

router = APIRouter(prefix="/api/exams", tags=["Exams"])

TIME_FORMAT = "%H:%M:%S"


def parse_statuses(raw: Optional[str]) -> List[ExamStatus]:
    """`UPCOMING,ONGOING` -> [ExamStatus.UPCOMING, ExamStatus.ONGOING]"""
    if not raw:
        return []
    try:
        return [ExamStatus(part.strip().upper()) for part in raw.split(",") if part.strip()]
    except ValueError:
        raise PortalException(
            "Invalid exam status",
            400,
            {"allowed": [s.value for s in ExamStatus]},
        )


def format_schedule(schedule: ExamSchedule) -> dict:
    return {
        "id": str(schedule.id),
        "exam_id": str(schedule.exam_id),
        "exam": schedule.exam.name,
        "class_id": str(schedule.class_id),
        "class_name": schedule.class_ref.name,
        "subject_id": str(schedule.subject_id),
        "subject": schedule.subject.name,
        "date": schedule.date.isoformat(),
        "start_time": schedule.start_time.strftime(TIME_FORMAT),
        "end_time": schedule.end_time.strftime(TIME_FORMAT),
        "location": schedule.location,
        "invigilators": [{"id": str(t.id), "name": t.user.name} for t in schedule.invigilators],
    }


def format_exam(exam: Exam) -> dict:
    return {
        "id": str(exam.id),
        "name": exam.name,
        "description": exam.description,
        "start_date": exam.start_date.isoformat(),
        "end_date": exam.end_date.isoformat(),
        "status": exam.status.value,
        "classes": [{"id": str(c.id), "name": c.name} for c in exam.classes],
        "schedules_count": len(exam.schedules),
        "created_at": exam.created_at,
    }


def format_result(result: ExamResult) -> dict:
    student = result.student
    return {
        "id": str(result.id),
        "exam_id": str(result.exam_id),
        "exam": result.exam.name,
        "student_id": str(result.student_id),
        "student_name": student.user.name,
        "roll_number": student.roll_number,
        "class_name": student.class_ref.name if student.class_ref else None,
        "subject_id": str(result.subject_id),
        "subject": result.subject.name,
        "marks": result.marks,
        "max_marks": result.max_marks,
        "percentage": percentage(result.marks, result.max_marks),
        "grade": result.grade,
        "remarks": result.remarks,
    }


# Schedules

@router.get("/schedules", response_model=dict, dependencies=[Depends(get_current_session)])
async def list_schedules(
    exam_id: Optional[UUID] = Query(None),
    class_id: Optional[UUID] = Query(None),
    subject_id: Optional[UUID] = Query(None),
    start_date: Optional[date] = Query(None),
    end_date: Optional[date] = Query(None),
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    db: AsyncSession = Depends(get_db)
):
    service = ExamService(db)
    result = await service.list_schedules(
        exam_id=exam_id,
        class_id=class_id,
        subject_id=subject_id,
        start_date=start_date,
        end_date=end_date,
        page=page,
        limit=limit,
    )
    return {"schedules": [format_schedule(s) for s in result["items"]], "meta": result["meta"]}


@router.post("/schedules", response_model=dict, dependencies=[Depends(require_staff)])
async def create_schedule(
    schedule_data: ExamScheduleCreate,
    db: AsyncSession = Depends(get_db)
):
    service = ExamService(db)
    schedule = await service.create_schedule(schedule_data.model_dump())
    return format_schedule(schedule)


@router.delete("/schedules/{schedule_id}", dependencies=[Depends(require_staff)])
async def delete_schedule(
    schedule_id: UUID,
    db: AsyncSession = Depends(get_db)
):
    service = ExamService(db)
    await service.delete_schedule(schedule_id)
    return {"message": "Exam schedule deleted successfully", "id": str(schedule_id)}


# Results

@router.get("/results", response_model=dict)
async def list_results(
    exam_id: Optional[UUID] = Query(None),
    student_id: Optional[UUID] = Query(None),
    class_id: Optional[UUID] = Query(None),
    subject_id: Optional[UUID] = Query(None),
    search: Optional[str] = Query(None),
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    session: SessionData = Depends(get_current_session),
    db: AsyncSession = Depends(get_db)
):
    """Students only ever see their own results"""
    if session.role == UserRole.STUDENT:
        own = await db.execute(select(Student.id).where(Student.user_id == UUID(session.user_id)))
        student_id = own.scalar_one_or_none()
        if student_id is None:
            raise NotFoundError("Student profile")

    service = ExamService(db)
    result = await service.list_results(
        exam_id=exam_id,
        student_id=student_id,
        class_id=class_id,
        subject_id=subject_id,
        search=search,
        page=page,
        limit=limit,
    )
    return {"results": [format_result(r) for r in result["items"]], "meta": result["meta"]}


@router.post("/results", response_model=dict, dependencies=[Depends(require_staff)])
async def save_results(
    results_data: ExamResultsSave,
    db: AsyncSession = Depends(get_db)
):
    service = ExamService(db)
    data = results_data.model_dump()
    count = await service.save_results(data["exam_id"], data["results"])
    return {"message": "Exam results saved successfully", "count": count}


# Exams

@router.get("", response_model=dict, dependencies=[Depends(get_current_session)])
async def list_exams(
    search: Optional[str] = Query(None),
    status: Optional[str] = Query(None, description="Comma separated statuses"),
    class_id: Optional[UUID] = Query(None),
    start_date: Optional[date] = Query(None),
    end_date: Optional[date] = Query(None),
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    db: AsyncSession = Depends(get_db)
):
    service = ExamService(db)
    result = await service.list_exams(
        search=search,
        statuses=parse_statuses(status),
        class_id=class_id,
        start_date=start_date,
        end_date=end_date,
        page=page,
        limit=limit,
    )
    return {"exams": [format_exam(e) for e in result["items"]], "meta": result["meta"]}


@router.post("", response_model=dict)
async def create_exam(
    exam_data: ExamCreate,
    teacher: Optional[Teacher] = Depends(acting_teacher),
    db: AsyncSession = Depends(get_db)
):
    """Admins may use any class, teachers only the classes they own"""
    service = ExamService(db)
    exam = await service.create_exam(exam_data.model_dump(), teacher)
    return format_exam(exam)


@router.get("/{exam_id}", response_model=dict, dependencies=[Depends(get_current_session)])
async def get_exam(
    exam_id: UUID,
    db: AsyncSession = Depends(get_db)
):
    service = ExamService(db)
    exam = await service.get_with_details(exam_id)
    if not exam:
        raise NotFoundError("Exam", exam_id)
    return {
        **format_exam(exam),
        "schedules": [
            {
                "id": str(s.id),
                "class_name": s.class_ref.name,
                "subject": s.subject.name,
                "date": s.date.isoformat(),
                "start_time": s.start_time.strftime(TIME_FORMAT),
                "end_time": s.end_time.strftime(TIME_FORMAT),
                "location": s.location,
                "invigilators": [t.user.name for t in s.invigilators],
            }
            for s in sorted(exam.schedules, key=lambda s: (s.date, s.start_time))
        ],
        "results_count": await service.results_count(exam.id),
    }


@router.put("/{exam_id}", response_model=dict)
async def update_exam(
    exam_id: UUID,
    exam_data: ExamUpdate,
    teacher: Optional[Teacher] = Depends(acting_teacher),
    db: AsyncSession = Depends(get_db)
):
    service = ExamService(db)
    exam = await service.update_exam(exam_id, exam_data.model_dump(exclude_unset=True), teacher)
    return format_exam(exam)


@router.delete("/{exam_id}", dependencies=[Depends(require_admin)])
async def delete_exam(
    exam_id: UUID,
    db: AsyncSession = Depends(get_db)
):
    service = ExamService(db)
    await service.delete_exam(exam_id)
    return {"message": "Exam deleted successfully", "id": str(exam_id)}
