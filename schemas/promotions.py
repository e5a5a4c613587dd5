from typing import List

from schemas.common import CamelModel


class PromotionItem(CamelModel):
    student_id: int
    class_id: int                           # class the student moves into


class PromotionRequest(CamelModel):
    session_id: int                         # session the new enrolment belongs to
    promotions: List[PromotionItem]
