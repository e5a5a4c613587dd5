"""
services/result_service.py

Data-access boundary for grading.

- Reads ORM rows once, turns them into services.grading records, and hands
  those to the pure functions (positions, promotion, grade resolution).
- Writes results: total from component scores, grade/remark from the
  session's GradingPolicy, subject cumulative average.
- Never commits; the router owns the transaction.
"""

import logging
from typing import Dict, Iterable, List, Optional

from sqlalchemy.orm import Session, joinedload, selectinload

from database.db import retry_once
from models.schools import School  # noqa: F401  (mapper registration)
from models.academic_sessions import AcademicSession
from models.classes import Class as ClassModel
from models.subjects import Subject as SubjectModel
from models.students import Student as StudentModel
from models.student_classes import StudentClass, ACTIVE
from models.result_config import ResultConfiguration, ResultPeriod
from models.results import Result as ResultModel, ComponentScore
from schemas.results import ResultIn
from services.grading.aggregation import (
    aggregate_components,
    component_ceiling,
    over_ceiling,
    subject_cumulative_average,
)
from services.grading.policy import GradingPolicy
from services.grading.promotion import PromotionCandidate, evaluate_promotion
from services.grading.ranking import PositionReport, compute_positions
from services.grading.records import PeriodWeight, ResultRecord, ResultStatus, StudentRecord

logger = logging.getLogger(__name__)


class EntityNotFound(LookupError):
    """A referenced row does not exist (or belongs to another school)."""


class ConfigurationNotFound(EntityNotFound):
    pass


class InvalidResult(ValueError):
    """Input that cannot produce a gradable result."""


# ==========================================================
# [queries] each replayed once on a dropped connection
# ==========================================================
@retry_once
def _fetch_results(
    db: Session,
    session_id: int,
    period_id: Optional[int] = None,
    school_id: Optional[int] = None,
    student_ids: Optional[Iterable[int]] = None,
    published_only: bool = False,
) -> List[ResultModel]:
    q = (
        db.query(ResultModel)
        .options(joinedload(ResultModel.student), joinedload(ResultModel.subject))
        .filter(ResultModel.session_id == session_id)
    )
    if period_id is not None:
        q = q.filter(ResultModel.period_id == period_id)
    if school_id is not None:
        q = q.join(StudentModel, StudentModel.id == ResultModel.student_id).filter(StudentModel.school_id == school_id)
    if student_ids is not None:
        q = q.filter(ResultModel.student_id.in_(list(student_ids)))
    if published_only:
        q = q.filter(ResultModel.published.is_(True))
    return q.order_by(ResultModel.id).all()


@retry_once
def _fetch_enrolments(
    db: Session,
    session_id: int,
    class_id: Optional[int] = None,
    student_ids: Optional[Iterable[int]] = None,
) -> List[StudentClass]:
    q = (
        db.query(StudentClass)
        .options(joinedload(StudentClass.student), joinedload(StudentClass.klass))
        .filter(StudentClass.session_id == session_id, StudentClass.status == ACTIVE)
    )
    if class_id is not None:
        q = q.filter(StudentClass.class_id == class_id)
    if student_ids is not None:
        q = q.filter(StudentClass.student_id.in_(list(student_ids)))
    return q.order_by(StudentClass.id).all()


# ==========================================================
# [serialization] camelCase like the web app expects
# ==========================================================
def serialize_result(result: ResultModel, include_components: bool = True) -> dict:
    data = {
        "id": result.id,
        "studentId": result.student_id,
        "subjectId": result.subject_id,
        "periodId": result.period_id,
        "sessionId": result.session_id,
        "subject": {"id": result.subject.id, "name": result.subject.name, "code": result.subject.code}
        if result.subject else None,
        "total": result.total,
        "marks": result.marks,
        "totalMarks": result.total_marks,
        "grade": result.grade,
        "remark": result.remark,
        "cumulativeAverage": result.cumulative_average,
        "teacherComment": result.teacher_comment,
        "adminComment": result.admin_comment,
        "isApproved": result.is_approved,
        "published": result.published,
        "status": ResultStatus.of(result.is_approved, result.published).value,
    }
    if include_components:
        data["componentScores"] = [
            {
                "componentId": cs.component_id,
                "name": cs.component.name if cs.component else None,
                "key": cs.component.key if cs.component else None,
                "score": cs.score,
                "maxScore": cs.component.max_score if cs.component else None,
            }
            for cs in result.component_scores
        ]
    return data


class ResultService:
    def __init__(self, db: Session):
        self.db = db

    # ------------------------------------------------------
    # configuration / policy
    # ------------------------------------------------------
    def find_configuration(self, school_id: int, session_id: int) -> Optional[ResultConfiguration]:
        return (
            self.db.query(ResultConfiguration)
            .options(selectinload(ResultConfiguration.periods), selectinload(ResultConfiguration.grading_scale))
            .filter(ResultConfiguration.school_id == school_id, ResultConfiguration.session_id == session_id)
            .first()
        )

    def get_configuration(self, school_id: int, session_id: int) -> ResultConfiguration:
        config = self.find_configuration(school_id, session_id)
        if config is None:
            raise ConfigurationNotFound("Result configuration not found for this session")
        return config

    @staticmethod
    def policy_of(config: Optional[ResultConfiguration]) -> GradingPolicy:
        if config is None:
            return GradingPolicy.default()
        return GradingPolicy.from_scale(config.grading_scale, pass_mark=config.pass_mark)

    def policy_for(self, session_id: int, school_id: Optional[int] = None) -> GradingPolicy:
        if school_id is None:
            session = self.db.get(AcademicSession, session_id)
            if session is None:
                return GradingPolicy.default()
            school_id = session.school_id
        return self.policy_of(self.find_configuration(school_id, session_id))

    # ------------------------------------------------------
    # records
    # ------------------------------------------------------
    def result_records(
        self,
        session_id: int,
        period_id: Optional[int] = None,
        school_id: Optional[int] = None,
        student_ids: Optional[Iterable[int]] = None,
        published_only: bool = False,
    ) -> List[ResultRecord]:
        rows = _fetch_results(self.db, session_id, period_id=period_id, school_id=school_id,
                              student_ids=student_ids, published_only=published_only)
        enrolled: Dict[int, StudentClass] = {}
        for e in _fetch_enrolments(self.db, session_id, student_ids={r.student_id for r in rows}):
            enrolled.setdefault(e.student_id, e)
        return [self._to_record(r, enrolled.get(r.student_id)) for r in rows]

    @staticmethod
    def _to_record(row: ResultModel, enrolment: Optional[StudentClass] = None) -> ResultRecord:
        return ResultRecord(
            result_id=row.id,
            student_id=row.student_id,
            student_name=row.student.name if row.student else "",
            subject_id=row.subject_id,
            subject_name=row.subject.name if row.subject else "",
            period_id=row.period_id,
            total=row.total or 0.0,
            grade=row.grade,
            status=ResultStatus.of(row.is_approved, row.published),
            class_id=enrolment.class_id if enrolment else None,
            class_name=enrolment.klass.name if enrolment and enrolment.klass else None,
        )

    # ------------------------------------------------------
    # positions
    # ------------------------------------------------------
    def positions(
        self,
        period_id: int,
        session_id: int,
        class_id: Optional[int] = None,
        school_id: Optional[int] = None,
        published_only: bool = False,
    ) -> PositionReport:
        records = self.result_records(session_id, period_id=period_id, school_id=school_id,
                                      published_only=published_only)
        if class_id is not None:
            # intersect after the fetch: only ACTIVE members of the class are ranked
            members = {e.student_id for e in _fetch_enrolments(self.db, session_id, class_id=class_id)}
            records = [r for r in records if r.student_id in members]

        policy = self.policy_for(session_id, school_id)
        logger.info("Ranking %d results (period=%s session=%s class=%s)", len(records), period_id, session_id, class_id)
        return compute_positions(records, share_tied_positions=policy.share_tied_positions)

    # ------------------------------------------------------
    # promotion
    # ------------------------------------------------------
    def promotion_eligibility(self, school_id: int, class_id: int, session_id: int) -> List[PromotionCandidate]:
        config = self.get_configuration(school_id, session_id)
        enrolments = _fetch_enrolments(self.db, session_id, class_id=class_id)
        student_ids = [e.student_id for e in enrolments]

        records = [self._to_record(r) for r in _fetch_results(self.db, session_id, student_ids=student_ids)]
        periods = [PeriodWeight(period_id=p.id, name=p.name, weight=p.weight) for p in config.periods]
        students = [StudentRecord(id=e.student.id, name=e.student.name, email=e.student.email) for e in enrolments]
        return evaluate_promotion(students, records, periods, self.policy_of(config))

    def promote(self, school_id: int, session_id: int, promotions: Iterable) -> int:
        """Upsert an ACTIVE enrolment per (student, class) in the target session."""
        session = self.db.get(AcademicSession, session_id)
        if session is None or session.school_id != school_id:
            raise EntityNotFound("Academic session not found")

        count = 0
        for item in promotions:
            student = self.db.get(StudentModel, item.student_id)
            klass = self.db.get(ClassModel, item.class_id)
            if student is None or student.school_id != school_id:
                raise EntityNotFound(f"Student {item.student_id} not found")
            if klass is None or klass.school_id != school_id:
                raise EntityNotFound(f"Class {item.class_id} not found")

            enrolment = (
                self.db.query(StudentClass)
                .filter(
                    StudentClass.student_id == item.student_id,
                    StudentClass.class_id == item.class_id,
                    StudentClass.session_id == session_id,
                )
                .first()
            )
            if enrolment is None:
                self.db.add(StudentClass(student_id=item.student_id, class_id=item.class_id,
                                         session_id=session_id, status=ACTIVE))
            else:
                enrolment.status = ACTIVE
            count += 1
        self.db.flush()
        return count

    # ------------------------------------------------------
    # writes
    # ------------------------------------------------------
    def save_result(self, school_id: int, payload: ResultIn, result_id: Optional[int] = None) -> ResultModel:
        """
        Save a result from its component scores.

        Without result_id the (student, subject, period, session) key is
        upserted; with it, that row is replaced.
        """
        period = self.db.get(ResultPeriod, payload.period_id)
        if period is None or period.configuration.school_id != school_id:
            raise EntityNotFound("Period not found")
        config = period.configuration
        if config.session_id != payload.session_id:
            raise InvalidResult("Period does not belong to this session")

        student = self.db.get(StudentModel, payload.student_id)
        if student is None or student.school_id != school_id:
            raise EntityNotFound("Student not found")

        subject = self.db.get(SubjectModel, payload.subject_id)
        if subject is None or subject.school_id != school_id:
            raise EntityNotFound("Subject not found")

        components = {c.id: c for c in config.assessment_components}
        unknown = [s.component_id for s in payload.component_scores if s.component_id not in components]
        if unknown:
            raise InvalidResult(f"Unknown assessment components: {unknown}")

        total = aggregate_components(payload.component_scores)
        over = over_ceiling(payload.component_scores, components.values())
        if over:
            logger.warning("Student %s: component scores above max score for components %s (total %s of %s)",
                           student.id, over, total, component_ceiling(components.values()))

        band = self.policy_of(config).resolve(total)
        if band is None:
            raise InvalidResult("Invalid total score")

        existing = self._find_by_key(payload)
        if result_id is None:
            result = existing
            if result is None:
                result = ResultModel()
                self.db.add(result)
        else:
            result = self.db.get(ResultModel, result_id)
            if result is None or result.student is None or result.student.school_id != school_id:
                raise EntityNotFound("Result not found")
            if existing is not None and existing.id != result.id:
                raise InvalidResult("A result already exists for this student, subject and period")

        result.student_id = payload.student_id
        result.subject_id = payload.subject_id
        result.period_id = payload.period_id
        result.session_id = payload.session_id
        result.total = total
        result.grade = band.grade
        result.remark = band.remark
        result.teacher_comment = payload.teacher_comment
        result.admin_comment = payload.admin_comment
        result.component_scores = [
            ComponentScore(component_id=s.component_id, score=s.score) for s in payload.component_scores
        ]
        result.cumulative_average = (
            self._cumulative_average(payload, total, result.id) if config.cumulative_enabled else None
        )
        self.db.flush()
        return result

    def save_results(self, school_id: int, payloads: Iterable[ResultIn]) -> List[ResultModel]:
        """Batch entry: every row is upserted by its key; the first failure aborts the batch."""
        return [self.save_result(school_id, payload) for payload in payloads]

    def _find_by_key(self, payload: ResultIn) -> Optional[ResultModel]:
        return (
            self.db.query(ResultModel)
            .filter(
                ResultModel.student_id == payload.student_id,
                ResultModel.subject_id == payload.subject_id,
                ResultModel.period_id == payload.period_id,
                ResultModel.session_id == payload.session_id,
            )
            .first()
        )

    def _cumulative_average(self, payload: ResultIn, total: float, result_id: Optional[int]) -> float:
        q = self.db.query(ResultModel.total).filter(
            ResultModel.student_id == payload.student_id,
            ResultModel.subject_id == payload.subject_id,
            ResultModel.session_id == payload.session_id,
            ResultModel.period_id != payload.period_id,
        )
        if result_id is not None:
            q = q.filter(ResultModel.id != result_id)
        return subject_cumulative_average(total, [row.total for row in q.all()])

    def update_marks(
        self,
        result: ResultModel,
        marks: float,
        total_marks: float,
        remarks: Optional[str] = None,
        is_approved: Optional[bool] = None,
    ) -> ResultModel:
        """Marks-entry path: grade the percentage with the same policy as component entry."""
        percentage = marks / total_marks * 100
        policy = self.policy_for(result.session_id, result.student.school_id if result.student else None)
        band = policy.resolve(percentage)

        result.marks = marks
        result.total_marks = total_marks
        result.total = round(percentage, 2)
        result.grade = band.grade if band else None
        result.remark = remarks if remarks is not None else (band.remark if band else None)
        if is_approved is not None:
            result.is_approved = is_approved
        self.db.flush()
        return result

    def publish(
        self,
        session_id: int,
        period_id: int,
        class_id: Optional[int] = None,
        school_id: Optional[int] = None,
    ) -> int:
        """Publish approved results; drafts stay hidden."""
        q = self.db.query(ResultModel).filter(
            ResultModel.session_id == session_id,
            ResultModel.period_id == period_id,
            ResultModel.is_approved.is_(True),
            ResultModel.published.is_(False),
        )
        if school_id is not None:
            q = q.join(StudentModel, StudentModel.id == ResultModel.student_id).filter(StudentModel.school_id == school_id)
        if class_id is not None:
            members = [e.student_id for e in _fetch_enrolments(self.db, session_id, class_id=class_id)]
            q = q.filter(ResultModel.student_id.in_(members))

        results = q.all()
        for r in results:
            r.published = True
        self.db.flush()
        logger.info("Published %d results (period=%s session=%s class=%s)", len(results), period_id, session_id, class_id)
        return len(results)

    # ------------------------------------------------------
    # report card
    # ------------------------------------------------------
    def student_report(
        self,
        student_id: int,
        period_id: int,
        session_id: int,
        school_id: Optional[int] = None,
        published_only: bool = False,
    ) -> dict:
        student = self.db.get(StudentModel, student_id)
        if student is None or (school_id is not None and student.school_id != school_id):
            raise EntityNotFound("Student not found")

        enrolments = _fetch_enrolments(self.db, session_id, student_ids=[student_id])
        enrolment = enrolments[0] if enrolments else None

        q = (
            self.db.query(ResultModel)
            .join(SubjectModel, SubjectModel.id == ResultModel.subject_id)
            .options(
                joinedload(ResultModel.subject),
                selectinload(ResultModel.component_scores).joinedload(ComponentScore.component),
            )
            .filter(
                ResultModel.student_id == student_id,
                ResultModel.period_id == period_id,
                ResultModel.session_id == session_id,
            )
        )
        if published_only:
            q = q.filter(ResultModel.published.is_(True))
        results = q.order_by(SubjectModel.name).all()

        period = self.db.get(ResultPeriod, period_id)
        total_score = sum(r.total or 0 for r in results)
        average = total_score / len(results) if results else 0.0
        band = self.policy_for(session_id, student.school_id).resolve(average)

        return {
            "student": {
                "id": student.id,
                "name": student.name,
                "email": student.email,
                "rollNumber": enrolment.roll_number if enrolment else None,
                "admissionDate": student.admission_date.isoformat() if student.admission_date else None,
            },
            "class": {
                "id": enrolment.klass.id,
                "name": enrolment.klass.name,
                "section": enrolment.klass.section,
            } if enrolment and enrolment.klass else None,
            "period": {"id": period.id, "name": period.name} if period else None,
            "results": [serialize_result(r) for r in results],
            "summary": {
                "totalScore": total_score,
                "totalSubjects": len(results),
                "average": f"{average:.2f}",
                "overallGrade": band.grade if band else None,
            },
        }
