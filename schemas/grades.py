import enum

from pydantic import BaseModel, Field
from typing import List

# ✅ 성적 토큰 (config.constants.GRADE_POINTS 키와 동일)
class GradeValue(str, enum.Enum):
    A_PLUS = "A_PLUS"
    A = "A"
    A_MINUS = "A_MINUS"
    B_PLUS = "B_PLUS"
    B = "B"
    B_MINUS = "B_MINUS"
    C_PLUS = "C_PLUS"
    C = "C"
    D = "D"
    F = "F"
    P = "P"
    I = "I"
    W = "W"
    DO = "DO"
    NG = "NG"

# ✅ 성적 입력/수정 요청
class SubmitGradeRequest(BaseModel):
    enrollment_id: int = Field(..., ge=1)           # 수강 ID
    grade: GradeValue                               # 성적

# ✅ 일괄 성적 입력 요청
class BulkGradeEntry(BaseModel):
    enrollment_id: int = Field(..., ge=1)
    grade: GradeValue

class BulkGradeRequest(BaseModel):
    grades: List[BulkGradeEntry]
