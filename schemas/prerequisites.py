from pydantic import BaseModel, Field, field_validator

# ✅ 선수과목 추가 요청 (과목 코드 문자열 기준)
class PrerequisiteCreate(BaseModel):
    course_code: str = Field(..., min_length=1, max_length=20)         # 대상 과목 코드
    prerequisite_code: str = Field(..., min_length=1, max_length=20)   # 선수과목 코드

    @field_validator("course_code", "prerequisite_code", mode="before")
    @classmethod
    def _normalize_code(cls, v):
        # " cs101 " → "CS101"
        if isinstance(v, str):
            return v.strip().upper()
        return v

