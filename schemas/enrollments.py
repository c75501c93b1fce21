from pydantic import BaseModel, Field
from typing import Literal, Optional

# ✅ 수강신청 요청
class EnrollRequest(BaseModel):
    course_id: int = Field(..., ge=1)               # 신청할 과목 ID

# ✅ 수강신청 결과 (바로 등록 / 대기자 등록)
class EnrollResult(BaseModel):
    status: Literal["enrolled", "waitlisted"]
    waitlist_position: Optional[int] = None         # 대기 순번 (1부터)
