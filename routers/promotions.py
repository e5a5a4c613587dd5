import logging
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.orm import Session

from database.db import get_db
from dependencies.security import SessionContext, ensure_school_access, require_admin
from schemas.promotions import PromotionRequest
from services.result_service import ConfigurationNotFound, EntityNotFound, ResultService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/schools/{school_id}/promotions", tags=["promotions"])


# ✅ [ELIGIBILITY] weighted annual average against the pass mark
@router.get("/eligibility")
def promotion_eligibility(
    school_id: int,
    class_id: Optional[int] = Query(None, alias="classId"),
    session_id: Optional[int] = Query(None, alias="sessionId"),
    ctx: SessionContext = Depends(require_admin),
    db: Session = Depends(get_db),
):
    ensure_school_access(ctx, school_id)
    if class_id is None or session_id is None:
        raise HTTPException(status_code=400, detail="classId and sessionId are required")

    try:
        candidates = ResultService(db).promotion_eligibility(school_id, class_id, session_id)
    except ConfigurationNotFound as e:
        logger.warning("No result configuration: school=%s session=%s", school_id, session_id)
        raise HTTPException(status_code=404, detail=str(e))

    return [c.model_dump(by_alias=True) for c in candidates]


# ✅ [PROMOTE] enrol students into their next class, all or nothing
@router.post("")
def promote_students(
    school_id: int,
    body: PromotionRequest,
    ctx: SessionContext = Depends(require_admin),
    db: Session = Depends(get_db),
):
    ensure_school_access(ctx, school_id)
    if not body.promotions:
        raise HTTPException(status_code=400, detail="sessionId and promotions array are required")

    try:
        count = ResultService(db).promote(school_id, body.session_id, body.promotions)
    except EntityNotFound as e:
        db.rollback()
        raise HTTPException(status_code=404, detail=str(e))
    db.commit()
    return {"success": True, "count": count, "message": f"{count} students processed successfully"}
