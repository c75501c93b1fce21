"""
services/gpa_service.py

- 성적표(transcript) / 학기별·누적 GPA / 학업 상태 계산
- 재수강 규칙: 같은 과목 코드를 여러 번 이수하면 가장 최근 학기(개강일 기준) 성적만 GPA 에 반영
  (이전 이수 기록은 성적표에 표시만 되고 학점/평점 0 으로 취급)
"""

import math
from typing import Dict, Iterable, List, Optional, Set

from sqlalchemy.orm import Session

from config.constants import ACADEMIC_STANDING, GRADE_LABELS, GRADE_POINTS, is_gpa_eligible
from models.enrollments import EnrollmentStatus
from models.users import Role
from repositories import courses as course_repo
from repositories import enrollments as enrollment_repo
from repositories import users as user_repo
from utils.errors import ForbiddenError, NotFoundError


# ==========================================================
# [공통] 계산 유틸
# ==========================================================

def round_gpa(value: float) -> float:
    """소수 셋째 자리 반올림 (half-up, round(x*1000)/1000)"""
    return math.floor(value * 1000 + 0.5) / 1000


def compute_gpa(total_points: float, total_credits: int) -> Optional[float]:
    if total_credits == 0:
        return None
    return round_gpa(total_points / total_credits)


def get_academic_standing(gpa: Optional[float]) -> str:
    if gpa is None:
        return "N/A"
    if gpa >= ACADEMIC_STANDING["DEANS_LIST"]:
        return "Dean's List"
    if gpa >= ACADEMIC_STANDING["GOOD_STANDING"]:
        return "Good Standing"
    return "Academic Probation"


def get_gpa_eligible_ids(enrollments: Iterable) -> Set[int]:
    """
    과목 코드별로 GPA 에 반영할 수강 id 1개씩 선택
    - COMPLETED + 평점 있는 성적만 대상
    - 개강일이 가장 늦은 학기의 기록이 이김 (같은 날짜면 먼저 본 기록 유지)
    """
    latest: Dict[str, tuple] = {}  # course_code -> (start_date, enrollment_id)
    for e in enrollments:
        if e.status != EnrollmentStatus.COMPLETED.value or not is_gpa_eligible(e.grade):
            continue
        code = e.course.code
        start = e.course.semester.start_date
        current = latest.get(code)
        if current is None or start > current[0]:
            latest[code] = (start, e.id)
    return {enrollment_id for _, enrollment_id in latest.values()}


# ==========================================================
# [1단계] 성적표
# ==========================================================

def get_transcript(db: Session, student_id: int) -> dict:
    enrollments = enrollment_repo.get_all_student_enrollments(db, student_id)
    eligible_ids = get_gpa_eligible_ids(enrollments)

    # 학기별 그룹핑 (GPA 반영 여부와 무관하게 모든 수강 기록 표시)
    semesters: Dict[int, dict] = {}
    for e in sorted(enrollments, key=lambda r: (r.course.semester.start_date, r.id)):
        semester = e.course.semester
        bucket = semesters.setdefault(semester.id, {
            "semester": semester,
            "courses": [],
            "credits": 0,
            "points": 0.0,
        })
        counts = e.id in eligible_ids
        bucket["courses"].append({
            "enrollment_id": e.id,
            "course_code": e.course.code,
            "course_name": e.course.name,
            "credits": e.course.credits,
            "grade": e.grade,
            "grade_label": GRADE_LABELS.get(e.grade) if e.grade else None,
            "grade_points": e.grade_points,
            "status": e.status,
            "counts_toward_gpa": counts,
        })
        if counts:
            bucket["credits"] += e.course.credits
            bucket["points"] += GRADE_POINTS[e.grade] * e.course.credits

    entries: List[dict] = []
    total_credits = 0
    total_points = 0.0
    for bucket in semesters.values():
        semester = bucket["semester"]
        entries.append({
            "semester_id": semester.id,
            "semester_name": semester.name,
            "semester_code": semester.code,
            "start_date": semester.start_date.isoformat(),
            "courses": bucket["courses"],
            "semester_credits": bucket["credits"],
            "semester_grade_points": bucket["points"],
            "semester_gpa": compute_gpa(bucket["points"], bucket["credits"]),
        })
        total_credits += bucket["credits"]
        total_points += bucket["points"]

    cumulative_gpa = compute_gpa(total_points, total_credits)
    summary = {
        "cumulative_gpa": cumulative_gpa,
        "total_credits": total_credits,
        "total_grade_points": total_points,
        "academic_standing": get_academic_standing(cumulative_gpa),
        "progression": _build_progression(entries, total_credits, total_points, cumulative_gpa),
    }
    return {"entries": entries, "summary": summary}


def _build_progression(entries: List[dict], total_credits: int, total_points: float, cumulative_gpa: Optional[float]) -> Optional[dict]:
    """직전까지 누계 / 마지막 학기 / 누적 3단 요약 + 진급 여부"""
    if not entries:
        return None

    last = entries[-1]
    previous_credits = total_credits - last["semester_credits"]
    previous_points = total_points - last["semester_grade_points"]
    promoted = cumulative_gpa is not None and cumulative_gpa >= ACADEMIC_STANDING["GOOD_STANDING"]

    return {
        "previous_total_credits": previous_credits,
        "previous_total_grade_points": previous_points,
        "previous_gpa": compute_gpa(previous_points, previous_credits),
        "last_semester_credits": last["semester_credits"],
        "last_semester_grade_points": last["semester_grade_points"],
        "last_semester_gpa": last["semester_gpa"],
        "cumulative_credits": total_credits,
        "cumulative_grade_points": total_points,
        "cumulative_gpa": cumulative_gpa,
        "academic_status": "Promoted" if promoted else "Academic Probation",
    }


def get_gpa_summary(db: Session, student_id: int) -> dict:
    return get_transcript(db, student_id)["summary"]


# ==========================================================
# [2단계] 교직원용 성적표 조회
# ==========================================================

def get_student_transcript_for_staff(db: Session, viewer_id: int, viewer_role: str, student_id: int) -> dict:
    """
    관리자: 모든 학생
    교수: 본인 담당 과목을 수강(했던) 학생만
    """
    student = user_repo.find_user_by_id(db, student_id)
    if student is None or student.role != Role.STUDENT.value:
        raise NotFoundError("Student not found")

    if viewer_role == Role.INSTRUCTOR.value:
        course_ids = course_repo.get_instructor_course_ids(db, viewer_id)
        if not enrollment_repo.is_student_in_courses(db, student_id, course_ids):
            raise ForbiddenError("You can only view transcripts of students in your courses")
    elif viewer_role != Role.ADMIN.value:
        raise ForbiddenError("Only staff can view other students' transcripts")

    transcript = get_transcript(db, student_id)
    transcript["student"] = {
        "id": student.id,
        "first_name": student.first_name,
        "last_name": student.last_name,
        "email": student.email,
    }
    return transcript
