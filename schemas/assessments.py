from pydantic import BaseModel, Field, model_validator
from typing import List, Optional

# ✅ 평가 항목 (예: Mid-Exam 25%)
class AssessmentItem(BaseModel):
    name: str = Field(..., min_length=1, max_length=80)    # 항목명
    weight: float = Field(..., ge=0, le=100)               # 비중(%)
    max_score: float = Field(100, ge=1, le=1000)           # 만점

# ✅ 평가 항목 저장 요청 (비중 합계 100)
class SaveAssessmentsRequest(BaseModel):
    assessments: List[AssessmentItem] = Field(..., min_length=1)

    @model_validator(mode="after")
    def _weights_total_100(self):
        total = sum(a.weight for a in self.assessments)
        if abs(total - 100) > 1e-9:
            raise ValueError("Assessment weights must total 100%")
        return self

# ✅ 학생별 항목 점수
class ScoreItem(BaseModel):
    assessment_id: int = Field(..., ge=1)
    score: Optional[float] = Field(None, ge=0)             # 미입력은 None
    max_score: Optional[float] = Field(None, ge=1)

class SaveScoresRequest(BaseModel):
    scores: List[ScoreItem]
