"""수강신청 / 수강취소 / 대기자 처리 규칙"""

import threading
from datetime import datetime, timedelta

import pytest
from sqlalchemy.orm import sessionmaker

from conftest import NOW
from database.db import Base, make_engine
from models.courses import Course
from models.enrollments import Enrollment, EnrollmentStatus
from models.notifications import Notification
from models.semesters import Semester
from models.users import Role, User
from repositories import courses as course_repo
from repositories import enrollments as enrollment_repo
from services import enrollment_service
from utils.errors import (
    ConflictError,
    CreditLimitExceededError,
    EnrollmentClosedError,
    ForbiddenError,
    NotFoundError,
    ValidationError,
)


def _enrolled_count(db, course_id):
    return (
        db.query(Enrollment)
        .filter(Enrollment.course_id == course_id, Enrollment.status == EnrollmentStatus.ENROLLED.value)
        .count()
    )


# ---------------------------------------------------------------------------
# enroll_student
# ---------------------------------------------------------------------------

class TestEnrollStudent:
    def test_enrolls_when_seat_available(self, db, student, semester, make_course):
        course = make_course("CS101", semester)

        result = enrollment_service.enroll_student(db, student.id, course.id, now=NOW)

        assert result == {"status": "enrolled"}
        row = db.query(Enrollment).filter_by(student_id=student.id, course_id=course.id).one()
        assert row.status == EnrollmentStatus.ENROLLED.value
        assert row.enrolled_at == NOW
        assert row.grade is None

    def test_sends_enrollment_notification(self, db, student, semester, make_course):
        course = make_course("CS101", semester)

        enrollment_service.enroll_student(db, student.id, course.id, now=NOW)

        notes = db.query(Notification).filter_by(user_id=student.id).all()
        assert len(notes) == 1
        assert notes[0].type == "ENROLLMENT"
        assert "CS101" in notes[0].message

    def test_unknown_course_is_not_found(self, db, student, semester):
        with pytest.raises(NotFoundError):
            enrollment_service.enroll_student(db, student.id, 9999, now=NOW)

    @pytest.mark.parametrize("now", [datetime(2025, 8, 1), datetime(2025, 9, 20)])
    def test_outside_enrollment_window_is_closed(self, db, student, semester, make_course, now):
        course = make_course("CS101", semester)

        with pytest.raises(EnrollmentClosedError):
            enrollment_service.enroll_student(db, student.id, course.id, now=now)

    def test_window_bounds_are_inclusive(self, db, student, semester, make_course):
        course = make_course("CS101", semester)

        result = enrollment_service.enroll_student(db, student.id, course.id, now=semester.enrollment_end)

        assert result["status"] == "enrolled"

    def test_already_enrolled_is_conflict(self, db, student, semester, make_course, make_enrollment):
        course = make_course("CS101", semester)
        make_enrollment(student, course)

        with pytest.raises(ConflictError) as exc:
            enrollment_service.enroll_student(db, student.id, course.id, now=NOW)
        assert "already enrolled" in exc.value.message

    def test_already_waitlisted_is_conflict(self, db, student, semester, make_course, make_enrollment):
        course = make_course("CS101", semester)
        make_enrollment(student, course, EnrollmentStatus.WAITLISTED)

        with pytest.raises(ConflictError) as exc:
            enrollment_service.enroll_student(db, student.id, course.id, now=NOW)
        assert "waitlist" in exc.value.message

    def test_can_enroll_again_after_drop(self, db, student, semester, make_course, make_enrollment):
        course = make_course("CS101", semester)
        old = make_enrollment(student, course, EnrollmentStatus.DROPPED)

        result = enrollment_service.enroll_student(db, student.id, course.id, now=NOW)

        assert result["status"] == "enrolled"
        rows = db.query(Enrollment).filter_by(student_id=student.id, course_id=course.id).all()
        assert len(rows) == 2
        assert db.get(Enrollment, old.id).status == EnrollmentStatus.DROPPED.value

    def test_full_course_goes_to_waitlist(self, db, make_user, semester, make_course, make_enrollment):
        course = make_course("CS101", semester, capacity=1)
        make_enrollment(make_user(), course)
        second = make_user()

        result = enrollment_service.enroll_student(db, second.id, course.id, now=NOW)

        assert result == {"status": "waitlisted", "waitlist_position": 1}
        assert _enrolled_count(db, course.id) == 1

    def test_waitlist_positions_are_fifo(self, db, make_user, semester, make_course, make_enrollment):
        course = make_course("CS101", semester, capacity=1)
        make_enrollment(make_user(), course)
        second, third = make_user(), make_user()

        first_result = enrollment_service.enroll_student(db, second.id, course.id, now=NOW)
        second_result = enrollment_service.enroll_student(db, third.id, course.id, now=NOW + timedelta(minutes=1))

        assert first_result["waitlist_position"] == 1
        assert second_result["waitlist_position"] == 2

    def test_waitlist_join_skips_prerequisite_and_credit_checks(
        self, db, make_user, semester, make_course, make_enrollment, add_prerequisite
    ):
        course = make_course("CS201", semester, capacity=1, credits=4)
        add_prerequisite("CS201", "CS101")
        make_enrollment(make_user(), course)
        student = make_user()
        for i, credits in enumerate([3, 3, 3, 3, 4]):
            make_enrollment(student, make_course(f"GEN{i}", semester, credits=credits))

        result = enrollment_service.enroll_student(db, student.id, course.id, now=NOW)

        assert result["status"] == "waitlisted"

    def test_missing_prerequisites_are_listed(self, db, student, semester, make_course, add_prerequisite):
        course = make_course("CS301", semester)
        add_prerequisite("CS301", "CS101")
        add_prerequisite("CS301", "CS201")

        with pytest.raises(ValidationError) as exc:
            enrollment_service.enroll_student(db, student.id, course.id, now=NOW)

        assert exc.value.details == {"missing_prerequisites": ["CS101", "CS201"]}
        assert "CS101" in exc.value.message

    def test_completed_prerequisite_allows_enrollment(
        self, db, student, make_semester, semester, make_course, make_enrollment, add_prerequisite
    ):
        spring = make_semester("2025-SP", datetime(2025, 2, 1))
        make_enrollment(student, make_course("CS101", spring), EnrollmentStatus.COMPLETED, grade="C")
        course = make_course("CS201", semester)
        add_prerequisite("CS201", "CS101")

        result = enrollment_service.enroll_student(db, student.id, course.id, now=NOW)

        assert result["status"] == "enrolled"

    def test_credit_limit_exceeded(self, db, student, semester, make_course, make_enrollment):
        for i, credits in enumerate([3, 3, 3, 3, 4]):
            make_enrollment(student, make_course(f"GEN{i}", semester, credits=credits))
        course = make_course("CS400", semester, credits=4)

        with pytest.raises(CreditLimitExceededError):
            enrollment_service.enroll_student(db, student.id, course.id, now=NOW)
        assert _enrolled_count(db, course.id) == 0

    def test_credit_limit_allows_exactly_max(self, db, student, semester, make_course, make_enrollment):
        for i, credits in enumerate([3, 3, 3, 3, 4]):
            make_enrollment(student, make_course(f"GEN{i}", semester, credits=credits))
        course = make_course("CS400", semester, credits=2)

        result = enrollment_service.enroll_student(db, student.id, course.id, now=NOW)

        assert result["status"] == "enrolled"

    def test_credit_limit_only_counts_current_semester(
        self, db, student, make_semester, semester, make_course, make_enrollment
    ):
        spring = make_semester("2025-SP", datetime(2025, 2, 1))
        for i in range(6):
            make_enrollment(student, make_course(f"OLD{i}", spring, credits=3), EnrollmentStatus.COMPLETED, grade="B")
        course = make_course("CS101", semester, credits=4)

        result = enrollment_service.enroll_student(db, student.id, course.id, now=NOW)

        assert result["status"] == "enrolled"


# ---------------------------------------------------------------------------
# drop_course
# ---------------------------------------------------------------------------

class TestDropCourse:
    @pytest.fixture
    def two_courses(self, student, semester, make_course, make_enrollment):
        first = make_enrollment(student, make_course("CS101", semester, capacity=1))
        second = make_enrollment(student, make_course("MA101", semester))
        return first, second

    def test_unknown_enrollment_is_not_found(self, db, student):
        with pytest.raises(NotFoundError):
            enrollment_service.drop_course(db, student.id, 12345, now=NOW)

    def test_cannot_drop_someone_elses_enrollment(self, db, make_user, two_courses):
        other = make_user()
        with pytest.raises(ForbiddenError):
            enrollment_service.drop_course(db, other.id, two_courses[0].id, now=NOW)

    def test_only_enrolled_rows_can_be_dropped(self, db, student, semester, make_course, make_enrollment, two_courses):
        waitlisted = make_enrollment(student, make_course("PH101", semester), EnrollmentStatus.WAITLISTED)

        with pytest.raises(ValidationError):
            enrollment_service.drop_course(db, student.id, waitlisted.id, now=NOW)

    def test_cannot_drop_last_course(self, db, student, semester, make_course, make_enrollment):
        only = make_enrollment(student, make_course("CS101", semester))

        with pytest.raises(ValidationError) as exc:
            enrollment_service.drop_course(db, student.id, only.id, now=NOW)

        assert "last" in exc.value.message
        assert db.get(Enrollment, only.id).status == EnrollmentStatus.ENROLLED.value

    def test_drop_before_deadline_is_clean(self, db, student, two_courses):
        first, _ = two_courses

        result = enrollment_service.drop_course(db, student.id, first.id, now=NOW)

        row = db.get(Enrollment, first.id)
        assert row.status == EnrollmentStatus.DROPPED.value
        assert row.dropped_at == NOW
        assert row.grade is None
        assert row.graded_at is None
        assert result["grade"] is None

    def test_drop_after_deadline_records_withdrawal(self, db, student, semester, two_courses):
        first, _ = two_courses
        late = semester.drop_deadline + timedelta(days=1)

        result = enrollment_service.drop_course(db, student.id, first.id, now=late)

        row = db.get(Enrollment, first.id)
        assert row.status == EnrollmentStatus.DROPPED.value
        assert row.grade == "W"
        assert row.grade_points is None
        assert row.graded_at == late
        assert result["grade"] == "W"

    def test_drop_promotes_only_the_oldest_waitlisted(self, db, student, make_user, two_courses, make_enrollment):
        first, _ = two_courses
        course = db.get(Course, first.course_id)
        older, newer = make_user(), make_user()
        older_row = make_enrollment(older, course, EnrollmentStatus.WAITLISTED, enrolled_at=NOW - timedelta(days=2))
        newer_row = make_enrollment(newer, course, EnrollmentStatus.WAITLISTED, enrolled_at=NOW - timedelta(days=1))

        result = enrollment_service.drop_course(db, student.id, first.id, now=NOW)

        promoted = db.get(Enrollment, older_row.id)
        assert promoted.status == EnrollmentStatus.ENROLLED.value
        assert promoted.enrolled_at == NOW
        assert db.get(Enrollment, newer_row.id).status == EnrollmentStatus.WAITLISTED.value
        assert result["promoted_enrollment_id"] == older_row.id
        assert _enrolled_count(db, course.id) == 1

    def test_promoted_student_is_notified(self, db, student, make_user, two_courses, make_enrollment):
        first, _ = two_courses
        course = db.get(Course, first.course_id)
        waiting = make_user()
        make_enrollment(waiting, course, EnrollmentStatus.WAITLISTED)

        enrollment_service.drop_course(db, student.id, first.id, now=NOW)

        titles = [n.title for n in db.query(Notification).filter_by(user_id=waiting.id)]
        assert titles == ["Promoted from waitlist"]

    def test_drop_without_waitlist_promotes_nobody(self, db, student, two_courses):
        result = enrollment_service.drop_course(db, student.id, two_courses[0].id, now=NOW)
        assert result["promoted_enrollment_id"] is None


# ---------------------------------------------------------------------------
# leave_waitlist
# ---------------------------------------------------------------------------

class TestLeaveWaitlist:
    def test_leaving_marks_dropped_without_promotion(self, db, make_user, semester, make_course, make_enrollment):
        course = make_course("CS101", semester, capacity=1)
        make_enrollment(make_user(), course)
        leaving, staying = make_user(), make_user()
        leaving_row = make_enrollment(leaving, course, EnrollmentStatus.WAITLISTED, enrolled_at=NOW - timedelta(days=2))
        staying_row = make_enrollment(staying, course, EnrollmentStatus.WAITLISTED, enrolled_at=NOW - timedelta(days=1))

        enrollment_service.leave_waitlist(db, leaving.id, leaving_row.id, now=NOW)

        assert db.get(Enrollment, leaving_row.id).status == EnrollmentStatus.DROPPED.value
        assert db.get(Enrollment, leaving_row.id).dropped_at == NOW
        assert db.get(Enrollment, staying_row.id).status == EnrollmentStatus.WAITLISTED.value

    def test_only_waitlisted_rows(self, db, student, semester, make_course, make_enrollment):
        row = make_enrollment(student, make_course("CS101", semester))

        with pytest.raises(ValidationError):
            enrollment_service.leave_waitlist(db, student.id, row.id, now=NOW)

    def test_only_own_rows(self, db, student, make_user, semester, make_course, make_enrollment):
        row = make_enrollment(student, make_course("CS101", semester), EnrollmentStatus.WAITLISTED)

        with pytest.raises(ForbiddenError):
            enrollment_service.leave_waitlist(db, make_user().id, row.id, now=NOW)

    def test_unknown_row(self, db, student):
        with pytest.raises(NotFoundError):
            enrollment_service.leave_waitlist(db, student.id, 555, now=NOW)


# ---------------------------------------------------------------------------
# get_student_enrollments
# ---------------------------------------------------------------------------

class TestStudentEnrollments:
    def test_defaults_to_active_semester(
        self, db, student, instructor, make_semester, semester, make_course, make_enrollment
    ):
        spring = make_semester("2025-SP", datetime(2025, 2, 1))
        make_enrollment(student, make_course("OLD101", spring), EnrollmentStatus.COMPLETED, grade="A")
        make_enrollment(student, make_course("CS101", semester, instructors=[instructor]))

        items = enrollment_service.get_student_enrollments(db, student.id)

        assert [i["course_code"] for i in items] == ["CS101"]
        assert items[0]["instructor_name"] == f"Prof {instructor.last_name}"
        assert items[0]["semester_name"] == "Semester 2025-FA"

    def test_explicit_semester(self, db, student, make_semester, semester, make_course, make_enrollment):
        spring = make_semester("2025-SP", datetime(2025, 2, 1))
        make_enrollment(student, make_course("OLD101", spring), EnrollmentStatus.COMPLETED, grade="A")

        items = enrollment_service.get_student_enrollments(db, student.id, spring.id)

        assert [i["grade"] for i in items] == ["A"]

    def test_waitlisted_items_carry_position(self, db, student, make_user, semester, make_course, make_enrollment):
        course = make_course("CS101", semester, capacity=1)
        make_enrollment(make_user(), course)
        make_enrollment(student, course, EnrollmentStatus.WAITLISTED)

        items = enrollment_service.get_student_enrollments(db, student.id)

        assert items[0]["status"] == "WAITLISTED"
        assert items[0]["waitlist_position"] == 1


# ---------------------------------------------------------------------------
# 과목 잠금: 잠금이 트랜잭션의 첫 조회, 잠금 이후 값으로 판단
# ---------------------------------------------------------------------------

def _record_calls(monkeypatch, module, name, calls):
    original = getattr(module, name)

    def wrapper(*args, **kwargs):
        calls.append(name)
        return original(*args, **kwargs)

    monkeypatch.setattr(module, name, wrapper)


def test_enroll_locks_course_before_reading(db, student, semester, make_course, monkeypatch):
    course = make_course("CS101", semester)
    calls = []
    _record_calls(monkeypatch, course_repo, "lock_course", calls)
    _record_calls(monkeypatch, course_repo, "find_course_by_id", calls)
    _record_calls(monkeypatch, enrollment_repo, "find_active_enrollment", calls)
    _record_calls(monkeypatch, enrollment_repo, "count_enrolled_in_course", calls)

    enrollment_service.enroll_student(db, student.id, course.id, now=NOW)

    assert calls[0] == "lock_course"
    assert calls.index("count_enrolled_in_course") > calls.index("lock_course")


def test_enroll_sees_seat_taken_while_waiting_for_lock(
    db, session_factory, student, make_user, semester, make_course, monkeypatch
):
    course = make_course("CS101", semester, capacity=1)
    rival = make_user()
    original_lock = course_repo.lock_course

    def lock_after_rival_commits(session, course_id):
        # 잠금을 기다리는 동안 다른 신청이 마지막 자리를 가져가고 커밋
        other = session_factory()
        other.add(Enrollment(
            student_id=rival.id, course_id=course_id,
            status=EnrollmentStatus.ENROLLED.value, enrolled_at=NOW,
        ))
        other.commit()
        other.close()
        monkeypatch.setattr(course_repo, "lock_course", original_lock)
        return original_lock(session, course_id)

    monkeypatch.setattr(course_repo, "lock_course", lock_after_rival_commits)

    result = enrollment_service.enroll_student(db, student.id, course.id, now=NOW)

    assert result == {"status": "waitlisted", "waitlist_position": 1}
    assert _enrolled_count(db, course.id) == 1


def test_drop_rechecks_status_after_lock(
    db, session_factory, student, make_user, semester, make_course, make_enrollment, monkeypatch
):
    course = make_course("CS101", semester, capacity=1)
    row = make_enrollment(student, course)
    make_enrollment(student, make_course("MA101", semester))
    waiting = make_enrollment(make_user(), course, EnrollmentStatus.WAITLISTED)
    original_lock = course_repo.lock_course

    def lock_after_other_drop(session, course_id):
        # 같은 수강 row 에 대한 앞선 취소 요청이 먼저 커밋된 상황
        other = session_factory()
        stale = other.get(Enrollment, row.id)
        stale.status = EnrollmentStatus.DROPPED.value
        stale.dropped_at = NOW
        other.commit()
        other.close()
        return original_lock(session, course_id)

    db.get(Enrollment, row.id)  # 세션에 ENROLLED 상태로 올려둠
    monkeypatch.setattr(course_repo, "lock_course", lock_after_other_drop)

    with pytest.raises(ValidationError):
        enrollment_service.drop_course(db, student.id, row.id, now=NOW)

    db.expire_all()
    assert db.get(Enrollment, waiting.id).status == EnrollmentStatus.WAITLISTED.value


# ---------------------------------------------------------------------------
# 동시 요청 (파일 SQLite, 스레드): 정원 초과 없음 / 빈 자리당 승격 1명
# ---------------------------------------------------------------------------

@pytest.fixture
def file_db(tmp_path):
    engine = make_engine(f"sqlite:///{tmp_path / 'race.db'}")
    Base.metadata.create_all(bind=engine)
    yield sessionmaker(bind=engine, autoflush=False)
    engine.dispose()


def _seed(Session, capacity, student_count):
    """학기 1개, 정원 capacity 인 CS101 + 여유 있는 MA101, 학생 student_count 명"""
    with Session() as setup:
        sem = Semester(
            name="Fall", code="FA", start_date=datetime(2025, 9, 1), end_date=datetime(2025, 12, 20),
            enrollment_start=datetime(2025, 8, 1), enrollment_end=datetime(2025, 9, 15),
            drop_deadline=datetime(2025, 10, 1), is_active=True,
        )
        setup.add(sem)
        setup.flush()
        course = Course(code="CS101", name="Intro", credits=3, capacity=capacity, semester_id=sem.id)
        spare = Course(code="MA101", name="Calculus", credits=3, capacity=100, semester_id=sem.id)
        students = [
            User(email=f"s{i}@campus.test", first_name="S", last_name=str(i), role=Role.STUDENT.value)
            for i in range(student_count)
        ]
        setup.add_all([course, spare, *students])
        setup.commit()
        return course.id, spare.id, [s.id for s in students]


def _add_rows(Session, rows):
    """rows: (student_id, course_id, status, enrolled_at) → enrollment id 목록"""
    with Session() as setup:
        created = [
            Enrollment(student_id=s, course_id=c, status=st.value, enrolled_at=at)
            for s, c, st, at in rows
        ]
        setup.add_all(created)
        setup.commit()
        return [e.id for e in created]


def _run_together(Session, calls):
    """calls: (함수, 인자 tuple) 목록을 스레드로 동시에 실행 → (결과, 예외)"""
    barrier = threading.Barrier(len(calls))
    results, errors = [], []

    def worker(fn, args):
        session = Session()
        try:
            barrier.wait()
            results.append(fn(session, *args, now=NOW))
        except Exception as exc:  # pragma: no cover - 호출한 테스트에서 타입 확인
            errors.append(exc)
        finally:
            session.close()

    threads = [threading.Thread(target=worker, args=call) for call in calls]
    for t in threads:
        t.start()
    for t in threads:
        t.join()
    return results, errors


def _statuses(Session, ids):
    with Session() as check:
        return [check.get(Enrollment, i).status for i in ids]


def test_concurrent_enrolls_never_exceed_capacity(file_db):
    course_id, _, student_ids = _seed(file_db, capacity=1, student_count=4)

    results, errors = _run_together(
        file_db, [(enrollment_service.enroll_student, (sid, course_id)) for sid in student_ids]
    )

    assert errors == []
    assert sorted(r["status"] for r in results) == ["enrolled", "waitlisted", "waitlisted", "waitlisted"]
    assert sorted(r["waitlist_position"] for r in results if r["status"] == "waitlisted") == [1, 2, 3]
    with file_db() as check:
        assert _enrolled_count(check, course_id) == 1


def test_repeated_drop_promotes_only_once(file_db):
    course_id, spare_id, (owner, first, second) = _seed(file_db, capacity=1, student_count=3)
    seat, _, first_row, second_row = _add_rows(file_db, [
        (owner, course_id, EnrollmentStatus.ENROLLED, NOW - timedelta(days=5)),
        (owner, spare_id, EnrollmentStatus.ENROLLED, NOW - timedelta(days=5)),
        (first, course_id, EnrollmentStatus.WAITLISTED, NOW - timedelta(days=2)),
        (second, course_id, EnrollmentStatus.WAITLISTED, NOW - timedelta(days=1)),
    ])

    results, errors = _run_together(
        file_db, [(enrollment_service.drop_course, (owner, seat)) for _ in range(2)]
    )

    assert len(results) == 1
    assert results[0]["promoted_enrollment_id"] == first_row
    assert len(errors) == 1 and isinstance(errors[0], ValidationError)
    assert _statuses(file_db, [seat, first_row, second_row]) == ["DROPPED", "ENROLLED", "WAITLISTED"]
    with file_db() as check:
        assert _enrolled_count(check, course_id) == 1


def test_concurrent_drops_promote_one_student_per_seat(file_db):
    course_id, spare_id, (a, b, w1, w2, w3) = _seed(file_db, capacity=2, student_count=5)
    rows = _add_rows(file_db, [
        (a, course_id, EnrollmentStatus.ENROLLED, NOW - timedelta(days=5)),
        (b, course_id, EnrollmentStatus.ENROLLED, NOW - timedelta(days=5)),
        (a, spare_id, EnrollmentStatus.ENROLLED, NOW - timedelta(days=5)),
        (b, spare_id, EnrollmentStatus.ENROLLED, NOW - timedelta(days=5)),
        (w1, course_id, EnrollmentStatus.WAITLISTED, NOW - timedelta(days=3)),
        (w2, course_id, EnrollmentStatus.WAITLISTED, NOW - timedelta(days=2)),
        (w3, course_id, EnrollmentStatus.WAITLISTED, NOW - timedelta(days=1)),
    ])
    seat_a, seat_b, _, _, w1_row, w2_row, w3_row = rows

    results, errors = _run_together(file_db, [
        (enrollment_service.drop_course, (a, seat_a)),
        (enrollment_service.drop_course, (b, seat_b)),
    ])

    assert errors == []
    assert sorted(r["promoted_enrollment_id"] for r in results) == sorted([w1_row, w2_row])
    assert _statuses(file_db, [w1_row, w2_row, w3_row]) == ["ENROLLED", "ENROLLED", "WAITLISTED"]
    with file_db() as check:
        assert _enrolled_count(check, course_id) == 2
