import logging
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy import select
from sqlalchemy.orm import Session, selectinload

from database.db import get_db
from dependencies.security import SessionContext, ensure_school_access, require_session
from models.results import Result as ResultModel
from models.student_classes import StudentClass, ACTIVE
from models.students import Student as StudentModel
from schemas.results import ResultBatch, ResultIn, ResultUpsert
from services.result_service import EntityNotFound, InvalidResult, ResultService, serialize_result

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/schools/{school_id}/results", tags=["school results"])


def _school_scope(school_id: int, ctx: SessionContext) -> SessionContext:
    ensure_school_access(ctx, school_id)
    return ctx


def _save(db: Session, school_id: int, payload: ResultIn, result_id: Optional[int] = None):
    try:
        result = ResultService(db).save_result(school_id, payload, result_id=result_id)
    except EntityNotFound as e:
        raise HTTPException(status_code=404, detail=str(e))
    except InvalidResult as e:
        raise HTTPException(status_code=400, detail=str(e))
    db.commit()
    db.refresh(result)
    return serialize_result(result)


# ==========================================================
# [1] component score entry
# ==========================================================

# ✅ [CREATE] result from component scores
@router.post("")
def create_result(
    school_id: int,
    body: ResultIn,
    ctx: SessionContext = Depends(require_session),
    db: Session = Depends(get_db),
):
    _school_scope(school_id, ctx)
    if ctx.published_only:
        raise HTTPException(status_code=403, detail="Not allowed to enter results")
    logger.info("Saving result: school=%s student=%s subject=%s period=%s",
                school_id, body.student_id, body.subject_id, body.period_id)
    return _save(db, school_id, body)


# ✅ [UPDATE] replace component scores and regrade
@router.put("")
def update_result(
    school_id: int,
    body: ResultUpsert,
    ctx: SessionContext = Depends(require_session),
    db: Session = Depends(get_db),
):
    _school_scope(school_id, ctx)
    if ctx.published_only:
        raise HTTPException(status_code=403, detail="Not allowed to enter results")
    return _save(db, school_id, body, result_id=body.id)


# ✅ [BATCH] class/period grid, all rows saved or none
@router.post("/batch")
def save_batch(
    school_id: int,
    body: ResultBatch,
    ctx: SessionContext = Depends(require_session),
    db: Session = Depends(get_db),
):
    _school_scope(school_id, ctx)
    if ctx.published_only:
        raise HTTPException(status_code=403, detail="Not allowed to enter results")
    if not body.results:
        raise HTTPException(status_code=400, detail="Invalid or empty results array")

    try:
        saved = ResultService(db).save_results(school_id, body.results)
    except EntityNotFound as e:
        db.rollback()
        raise HTTPException(status_code=404, detail=str(e))
    except InvalidResult as e:
        db.rollback()
        raise HTTPException(status_code=400, detail=str(e))
    db.commit()

    count = len({r.id for r in saved})
    logger.info("Saved %d results in batch for school=%s", count, school_id)
    return {"success": True, "count": count, "message": f"Successfully saved {count} results"}


# ✅ [BATCH] read the grid back
@router.get("/batch")
def read_batch(
    school_id: int,
    period_id: Optional[int] = Query(None, alias="periodId"),
    session_id: Optional[int] = Query(None, alias="sessionId"),
    class_id: Optional[int] = Query(None, alias="classId"),
    ctx: SessionContext = Depends(require_session),
    db: Session = Depends(get_db),
):
    _school_scope(school_id, ctx)
    if period_id is None or session_id is None:
        raise HTTPException(status_code=400, detail="Missing required parameters: periodId and sessionId")

    q = (
        db.query(ResultModel)
        .join(StudentModel, StudentModel.id == ResultModel.student_id)
        .options(selectinload(ResultModel.component_scores), selectinload(ResultModel.subject))
        .filter(
            StudentModel.school_id == school_id,
            ResultModel.period_id == period_id,
            ResultModel.session_id == session_id,
        )
    )
    if class_id is not None:
        members = select(StudentClass.student_id).where(
            StudentClass.class_id == class_id,
            StudentClass.session_id == session_id,
            StudentClass.status == ACTIVE,
        )
        q = q.filter(ResultModel.student_id.in_(members))
    if ctx.published_only:
        q = q.filter(ResultModel.published.is_(True))

    return [serialize_result(r) for r in q.order_by(ResultModel.student_id, ResultModel.subject_id).all()]


# ==========================================================
# [2] reads
# ==========================================================

# ✅ [READ] filtered listing
@router.get("")
def list_results(
    school_id: int,
    student_id: Optional[int] = Query(None, alias="studentId"),
    subject_id: Optional[int] = Query(None, alias="subjectId"),
    period_id: Optional[int] = Query(None, alias="periodId"),
    session_id: Optional[int] = Query(None, alias="sessionId"),
    ctx: SessionContext = Depends(require_session),
    db: Session = Depends(get_db),
):
    _school_scope(school_id, ctx)

    q = (
        db.query(ResultModel)
        .join(StudentModel, StudentModel.id == ResultModel.student_id)
        .options(selectinload(ResultModel.component_scores), selectinload(ResultModel.subject))
        .filter(StudentModel.school_id == school_id)
    )
    if student_id is not None:
        q = q.filter(ResultModel.student_id == student_id)
    if subject_id is not None:
        q = q.filter(ResultModel.subject_id == subject_id)
    if period_id is not None:
        q = q.filter(ResultModel.period_id == period_id)
    if session_id is not None:
        q = q.filter(ResultModel.session_id == session_id)
    if ctx.published_only:
        q = q.filter(ResultModel.published.is_(True))

    return [serialize_result(r) for r in q.order_by(ResultModel.created_at.desc(), ResultModel.id.desc()).all()]


# ✅ [READ] report card of one student
@router.get("/student/{student_id}")
def student_result(
    school_id: int,
    student_id: int,
    period_id: Optional[int] = Query(None, alias="periodId"),
    session_id: Optional[int] = Query(None, alias="sessionId"),
    ctx: SessionContext = Depends(require_session),
    db: Session = Depends(get_db),
):
    _school_scope(school_id, ctx)
    if period_id is None or session_id is None:
        raise HTTPException(status_code=400, detail="Missing required parameters: periodId and sessionId")

    try:
        return ResultService(db).student_report(
            student_id, period_id, session_id,
            school_id=school_id,
            published_only=ctx.published_only,
        )
    except EntityNotFound as e:
        raise HTTPException(status_code=404, detail=str(e))
