"""
services/assessment_service.py

- 과목별 평가 항목(비중 합계 100) 관리와 학생별 항목 점수 입력
- 가중 백분율 → 추천 성적 계산 (최종 성적 입력은 grade_service 에서)
"""

import math
from typing import Dict, List, Optional

from sqlalchemy.orm import Session

from config.constants import percentage_to_grade
from database.db import unit_of_work
from models.enrollments import EnrollmentStatus
from repositories import assessments as assessment_repo
from repositories import enrollments as enrollment_repo
from services.grade_service import require_assigned_course
from utils.errors import NotFoundError, ValidationError


def calculate_weighted_percentage(assessments: List[dict], scores: Dict[int, dict]) -> Optional[int]:
    """
    항목별 (득점/만점) x 비중 의 합 → 0~100 정수
    - 한 항목이라도 점수가 없으면 None
    - 만점이 100 으로 저장된 예전 데이터는 "비중 만점" 으로 취급 (예: Test 1 11/15)
    """
    total_weighted = 0.0
    total_weight = 0.0
    for a in assessments:
        s = scores.get(a["id"])
        if s is None or s.get("score") is None:
            return None
        max_score = s.get("max_score") or a["max_score"]
        if max_score == 100:
            max_score = a["weight"]
        if max_score <= 0:
            continue
        total_weighted += (s["score"] / max_score) * a["weight"]
        total_weight += a["weight"]

    if total_weight == 0:
        return None
    return math.floor((total_weighted / total_weight) * 100 + 0.5)


def _to_item(a) -> dict:
    return {
        "id": a.id,
        "name": a.name,
        "weight": a.weight,
        "max_score": a.max_score,
        "sort_order": a.sort_order,
    }


def save_course_assessments(db: Session, instructor_id: int, course_id: int, assessments: List[dict]) -> List[dict]:
    if not assessments:
        raise ValidationError("At least one assessment is required")
    if abs(sum(a["weight"] for a in assessments) - 100) > 1e-9:
        raise ValidationError("Assessment weights must total 100%")

    with unit_of_work(db):
        require_assigned_course(db, instructor_id, course_id)
        rows = assessment_repo.replace_course_assessments(db, course_id, assessments)
        items = [_to_item(a) for a in rows]
    return items


def save_assessment_scores(db: Session, instructor_id: int, enrollment_id: int, scores: List[dict]) -> None:
    with unit_of_work(db):
        enrollment = enrollment_repo.find_enrollment_by_id(db, enrollment_id)
        if enrollment is None:
            raise NotFoundError("Enrollment not found")
        require_assigned_course(db, instructor_id, enrollment.course_id)

        valid_ids = {a.id for a in assessment_repo.get_course_assessments(db, enrollment.course_id)}
        for s in scores:
            if s["assessment_id"] not in valid_ids:
                raise ValidationError(f"Assessment {s['assessment_id']} does not belong to this course")
            if s.get("score") is not None and s["score"] < 0:
                raise ValidationError("Scores cannot be negative")
            assessment_repo.upsert_assessment_score(
                db, enrollment_id, s["assessment_id"], s.get("score"), s.get("max_score")
            )


def get_course_grading_data(db: Session, instructor_id: int, course_id: int) -> dict:
    """평가 항목 + 학생별 점수 / 가중 백분율 / 추천 성적"""
    course = require_assigned_course(db, instructor_id, course_id)
    assessments = [_to_item(a) for a in assessment_repo.get_course_assessments(db, course_id)]

    enrollments = [
        e for e in enrollment_repo.get_course_enrollments(db, course_id)
        if e.status in (EnrollmentStatus.ENROLLED.value, EnrollmentStatus.COMPLETED.value)
    ]
    scores_by_enrollment: Dict[int, Dict[int, dict]] = {}
    for s in assessment_repo.get_enrollment_scores(db, [e.id for e in enrollments]):
        scores_by_enrollment.setdefault(s.enrollment_id, {})[s.assessment_id] = {
            "score": s.score,
            "max_score": s.max_score,
        }

    students = []
    for e in enrollments:
        scores = scores_by_enrollment.get(e.id, {})
        percentage = calculate_weighted_percentage(assessments, scores) if assessments else None
        students.append({
            "enrollment_id": e.id,
            "student_id": e.student_id,
            "first_name": e.student.first_name,
            "last_name": e.student.last_name,
            "status": e.status,
            "grade": e.grade,
            "scores": {str(k): v for k, v in scores.items()},
            "weighted_percentage": percentage,
            "suggested_grade": percentage_to_grade(percentage) if percentage is not None else None,
        })

    return {
        "course": {"id": course.id, "code": course.code, "name": course.name, "credits": course.credits},
        "assessments": assessments,
        "students": students,
    }
