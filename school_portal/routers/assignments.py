# school_portal/routers/assignments.py
from typing import Optional
from uuid import UUID
from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from ..core.database import get_db
from ..core.dependencies import get_current_session, get_current_student, get_current_teacher
from ..core.exceptions import NotFoundError
from ..models.assignment import Assignment, AssignmentSubmission
from ..models.student import Student
from ..models.teacher import Teacher
from ..schemas.assignment_schemas import (
    AssignmentCreate, AssignmentUpdate, SubmissionCreate, SubmissionGrade,
)
from ..services.assignment_service import AssignmentService

router = APIRouter(prefix="/api/assignments", tags=["Assignments"])


def format_submission(submission: AssignmentSubmission, student_name: Optional[str] = None) -> dict:
    return {
        "id": str(submission.id),
        "assignment_id": str(submission.assignment_id),
        "student_id": str(submission.student_id),
        "student_name": student_name,
        "content": submission.content,
        "status": submission.status.value,
        "score": submission.score,
        "feedback": submission.feedback,
        "submitted_at": submission.submitted_at,
    }


def format_assignment(assignment: Assignment) -> dict:
    return {
        "id": str(assignment.id),
        "title": assignment.title,
        "description": assignment.description,
        "due_date": assignment.due_date,
        "status": assignment.status.value,
        "teacher_id": str(assignment.teacher_id),
        "teacher_name": assignment.teacher.user.name if assignment.teacher else None,
        "class": {"id": str(assignment.class_ref.id), "name": assignment.class_ref.name},
        "subject": {
            "id": str(assignment.subject.id),
            "name": assignment.subject.name,
            "code": assignment.subject.code,
        },
        "created_at": assignment.created_at,
    }


@router.get("", response_model=dict, dependencies=[Depends(get_current_session)])
async def list_assignments(
    class_id: Optional[UUID] = Query(None),
    subject_id: Optional[UUID] = Query(None),
    teacher_id: Optional[UUID] = Query(None),
    db: AsyncSession = Depends(get_db)
):
    service = AssignmentService(db)
    assignments = await service.list_assignments(class_id, subject_id, teacher_id)
    return {"assignments": [format_assignment(a) for a in assignments], "count": len(assignments)}


@router.post("", response_model=dict)
async def create_assignment(
    assignment_data: AssignmentCreate,
    teacher: Teacher = Depends(get_current_teacher),
    db: AsyncSession = Depends(get_db)
):
    """Create an assignment owned by the signed-in teacher"""
    service = AssignmentService(db)
    assignment = await service.create_assignment(teacher, assignment_data.model_dump())
    return format_assignment(assignment)


@router.get("/{assignment_id}", response_model=dict, dependencies=[Depends(get_current_session)])
async def get_assignment(
    assignment_id: UUID,
    db: AsyncSession = Depends(get_db)
):
    service = AssignmentService(db)
    assignment = await service.get_with_details(assignment_id)
    if not assignment:
        raise NotFoundError("Assignment", assignment_id)

    detail = format_assignment(assignment)
    detail["submissions"] = [
        format_submission(s, s.student.user.name if s.student else None)
        for s in assignment.submissions
    ]
    return detail


@router.patch("/{assignment_id}", response_model=dict)
async def update_assignment(
    assignment_id: UUID,
    assignment_data: AssignmentUpdate,
    teacher: Teacher = Depends(get_current_teacher),
    db: AsyncSession = Depends(get_db)
):
    service = AssignmentService(db)
    assignment = await service.update_assignment(
        assignment_id, teacher, assignment_data.model_dump(exclude_unset=True)
    )
    return format_assignment(assignment)


@router.delete("/{assignment_id}")
async def delete_assignment(
    assignment_id: UUID,
    teacher: Teacher = Depends(get_current_teacher),
    db: AsyncSession = Depends(get_db)
):
    service = AssignmentService(db)
    await service.delete_assignment(assignment_id, teacher)
    return {"message": "Assignment deleted successfully", "id": str(assignment_id)}


@router.post("/{assignment_id}/submissions", response_model=dict)
async def submit_assignment(
    assignment_id: UUID,
    submission_data: SubmissionCreate,
    student: Student = Depends(get_current_student),
    db: AsyncSession = Depends(get_db)
):
    """Hand in work for an assignment; resubmitting replaces the earlier submission"""
    service = AssignmentService(db)
    submission = await service.submit(assignment_id, student, submission_data.content)
    return format_submission(submission)


@router.patch("/{assignment_id}/submissions/{submission_id}", response_model=dict)
async def grade_submission(
    assignment_id: UUID,
    submission_id: UUID,
    grade_data: SubmissionGrade,
    teacher: Teacher = Depends(get_current_teacher),
    db: AsyncSession = Depends(get_db)
):
    service = AssignmentService(db)
    submission = await service.grade_submission(
        assignment_id, submission_id, teacher, grade_data.score, grade_data.feedback
    )
    return format_submission(submission)
