"""
config/constants.py

- 학사 정책 테이블 (성적 → 평점, 학사경고 기준, 학기당 최대 학점 등)
- 순수 데이터만 두고, 서비스 레이어에서 import 해서 사용합니다.
"""

from typing import Dict, List, Optional

# ✅ 학기당 최대/정규 학점
MAX_CREDITS_PER_SEMESTER = 18
MIN_CREDITS_FULL_TIME = 12

# ✅ 학기 종료 후 성적 입력 가능 기간(일)
GRADING_WINDOW_DAYS = 30

# ✅ 성적 → 평점 (4.0 만점). None 은 GPA 계산에서 제외 (성적표에는 표시)
GRADE_POINTS: Dict[str, Optional[float]] = {
    "A_PLUS": 4.0,
    "A": 4.0,
    "A_MINUS": 3.75,
    "B_PLUS": 3.5,
    "B": 3.0,
    "B_MINUS": 2.75,
    "C_PLUS": 2.5,
    "C": 2.0,
    "D": 1.0,
    "F": 0.0,
    "P": None,    # Pass
    "I": None,    # Incomplete
    "W": None,    # Withdrawn
    "DO": None,   # Dropout
    "NG": None,   # No Grade
}

# ✅ 화면 표시용 라벨
GRADE_LABELS: Dict[str, str] = {
    "A_PLUS": "A+",
    "A": "A",
    "A_MINUS": "A-",
    "B_PLUS": "B+",
    "B": "B",
    "B_MINUS": "B-",
    "C_PLUS": "C+",
    "C": "C",
    "D": "D",
    "F": "F",
    "P": "P",
    "I": "I",
    "W": "W",
    "DO": "DO",
    "NG": "NG",
}

# ✅ 선수과목 이수로 인정하지 않는 성적
NON_PASSING_GRADES = frozenset({"F", "W", "DO", "NG", "I"})

# ✅ 학업 상태 기준 (GPA 이상)
ACADEMIC_STANDING = {
    "DEANS_LIST": 3.5,
    "GOOD_STANDING": 2.0,
}

# ✅ 백분율(0~100) → 성적. 특수 성적(P, I, W, DO, NG)은 수동 입력만 가능
PERCENTAGE_TO_GRADE: List[dict] = [
    {"min": 90, "max": 100, "grade": "A_PLUS"},
    {"min": 85, "max": 89, "grade": "A"},
    {"min": 80, "max": 84, "grade": "A_MINUS"},
    {"min": 75, "max": 79, "grade": "B_PLUS"},
    {"min": 70, "max": 74, "grade": "B"},
    {"min": 65, "max": 69, "grade": "B_MINUS"},
    {"min": 60, "max": 64, "grade": "C_PLUS"},
    {"min": 50, "max": 59, "grade": "C"},
    {"min": 40, "max": 49, "grade": "D"},
    {"min": 0, "max": 39, "grade": "F"},
]


def percentage_to_grade(percentage: float) -> str:
    clamped = max(0, min(100, percentage))
    for band in PERCENTAGE_TO_GRADE:
        # 구간은 내림차순. 89.5 같은 경계 사이 값은 아래 구간으로 내림
        if clamped >= band["min"]:
            return band["grade"]
    return "F"


def is_gpa_eligible(grade: Optional[str]) -> bool:
    """GPA 계산에 들어가는 성적인지 (평점 값이 있는 성적)"""
    return grade is not None and GRADE_POINTS.get(grade) is not None


# ✅ 신규 과목 기본 평가 비중 (max_score = weight → "배점 중 득점" 형태)
DEFAULT_ASSESSMENT_WEIGHTS = [
    {"name": "Test 1", "weight": 15, "max_score": 15},
    {"name": "Mid-Exam", "weight": 25, "max_score": 25},
    {"name": "Assignment", "weight": 15, "max_score": 15},
    {"name": "Quiz", "weight": 5, "max_score": 5},
    {"name": "Final Exam", "weight": 40, "max_score": 40},
]
