import logging
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.orm import Session

from database.db import get_db
from dependencies.security import SessionContext, require_admin, require_session
from models.results import Result as ResultModel
from schemas.results import MarksUpdate, PublishRequest
from services.result_service import EntityNotFound, ResultService, serialize_result

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/results", tags=["results"])


def _get_result(db: Session, result_id: int, ctx: SessionContext) -> ResultModel:
    result = db.get(ResultModel, result_id)
    scope = ctx.scope_school_id()
    if result is None or (scope is not None and (result.student is None or result.student.school_id != scope)):
        logger.warning("Result not found: id=%s school=%s", result_id, scope)
        raise HTTPException(status_code=404, detail="Result not found")
    return result


# ==========================================================
# [1] computed views
# ==========================================================

# ✅ [POSITIONS] overall and per-subject positions for a period
@router.get("/positions")
def get_positions(
    period_id: Optional[int] = Query(None, alias="periodId"),
    session_id: Optional[int] = Query(None, alias="sessionId"),
    class_id: Optional[int] = Query(None, alias="classId"),
    student_id: Optional[int] = Query(None, alias="studentId"),
    ctx: SessionContext = Depends(require_session),
    db: Session = Depends(get_db),
):
    if period_id is None or session_id is None:
        raise HTTPException(status_code=400, detail="periodId and sessionId are required")

    report = ResultService(db).positions(
        period_id=period_id,
        session_id=session_id,
        class_id=class_id,
        school_id=ctx.scope_school_id(),
        published_only=ctx.published_only,
    )

    if student_id is not None:
        return report.for_student(student_id).model_dump(by_alias=True)
    return report.model_dump(by_alias=True)


# ✅ [REPORT] one student's report card for a period
@router.get("/report")
def get_report(
    student_id: Optional[int] = Query(None, alias="studentId"),
    period_id: Optional[int] = Query(None, alias="periodId"),
    session_id: Optional[int] = Query(None, alias="sessionId"),
    ctx: SessionContext = Depends(require_session),
    db: Session = Depends(get_db),
):
    if student_id is None or period_id is None or session_id is None:
        raise HTTPException(status_code=400, detail="studentId, periodId and sessionId are required")

    try:
        return ResultService(db).student_report(
            student_id, period_id, session_id,
            school_id=ctx.scope_school_id(),
            published_only=ctx.published_only,
        )
    except EntityNotFound as e:
        raise HTTPException(status_code=404, detail=str(e))


# ✅ [PUBLISH] make approved results visible to students and parents
@router.post("/publish")
def publish_results(
    body: PublishRequest,
    ctx: SessionContext = Depends(require_admin),
    db: Session = Depends(get_db),
):
    count = ResultService(db).publish(
        session_id=body.session_id,
        period_id=body.period_id,
        class_id=body.class_id,
        school_id=ctx.scope_school_id(),
    )
    db.commit()
    return {"success": True, "count": count, "message": f"{count} results published"}


# ==========================================================
# [2] single result
# ==========================================================

# ✅ [READ] one result
@router.get("/{result_id}")
def read_result(
    result_id: int,
    ctx: SessionContext = Depends(require_session),
    db: Session = Depends(get_db),
):
    result = _get_result(db, result_id, ctx)
    if ctx.published_only and not result.published:
        raise HTTPException(status_code=404, detail="Result not found")
    return serialize_result(result)


# ✅ [UPDATE] marks entry, grade recomputed from the percentage
@router.put("/{result_id}")
def update_result(
    result_id: int,
    body: MarksUpdate,
    ctx: SessionContext = Depends(require_session),
    db: Session = Depends(get_db),
):
    if ctx.published_only:
        raise HTTPException(status_code=403, detail="Not allowed to edit results")
    if body.is_approved is not None and not ctx.is_admin:
        raise HTTPException(status_code=403, detail="Only admins can approve results")
    if body.marks is None or body.total_marks is None:
        raise HTTPException(status_code=400, detail="marks and totalMarks must be provided together")
    if body.total_marks <= 0:
        raise HTTPException(status_code=400, detail="totalMarks must be greater than 0")

    result = _get_result(db, result_id, ctx)
    ResultService(db).update_marks(
        result, body.marks, body.total_marks,
        remarks=body.remarks, is_approved=body.is_approved,
    )
    db.commit()
    db.refresh(result)
    return serialize_result(result)


# ✅ [DELETE] admins only
@router.delete("/{result_id}")
def delete_result(
    result_id: int,
    ctx: SessionContext = Depends(require_admin),
    db: Session = Depends(get_db),
):
    result = _get_result(db, result_id, ctx)
    db.delete(result)
    db.commit()
    return {"success": True}
