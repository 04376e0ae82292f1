from conftest import API, auth_headers
from skillportal.core.security import Principal
from skillportal.models import Certificate, Enrollment
from skillportal.services import enrollment as enrollment_service


def submit(client, user, assignment, content="My answer"):
    return client.post(
        f"{API}/assignments/{assignment.id}/submission",
        json={"content": content},
        headers=auth_headers(user)
    )


def test_enroll_once_then_conflict(client, db, student, make_course):
    course = make_course()

    response = client.post(f"{API}/courses/{course.id}/enrollment", headers=auth_headers(student))
    assert response.status_code == 201
    body = response.json()
    assert body["status"] == "enrolled"
    assert body["progress"] == 0

    response = client.post(f"{API}/courses/{course.id}/enrollment", headers=auth_headers(student))
    assert response.status_code == 409
    response = client.post(f"{API}/enrollments/", json={"course_id": course.id}, headers=auth_headers(student))
    assert response.status_code == 409

    db.expire_all()
    assert db.query(Enrollment).filter(Enrollment.user_id == student.id).count() == 1


def test_enroll_in_draft_or_missing_course(client, student, make_course):
    draft = make_course(published=False)
    assert client.post(f"{API}/courses/{draft.id}/enrollment", headers=auth_headers(student)).status_code == 400
    assert client.post(f"{API}/courses/9999/enrollment", headers=auth_headers(student)).status_code == 404


def test_own_enrollment_status(client, student, make_course, enroll):
    course = make_course()
    response = client.get(f"{API}/courses/{course.id}/enrollment", headers=auth_headers(student))
    assert response.json() == {"enrolled": False, "enrollment": None}

    enroll(student, course)
    response = client.get(f"{API}/courses/{course.id}/enrollment", headers=auth_headers(student))
    assert response.json()["enrolled"] is True

    response = client.get(f"{API}/enrollments/", headers=auth_headers(student))
    assert [item["course_title"] for item in response.json()] == [course.title]


def test_progress_recompute_is_idempotent(db, student, make_course, make_assignment, enroll):
    course = make_course()
    make_assignment(course, "One")
    make_assignment(course, "Two")
    make_assignment(course, "Three")
    enroll(student, course)

    assert enrollment_service.compute_progress(db, student.id, course.id) == 0
    first = enrollment_service.recompute_progress(db, student.id, course.id)
    second = enrollment_service.recompute_progress(db, student.id, course.id)
    assert first == second == 0


def test_progress_without_assignments_is_zero(db, student, make_course):
    course = make_course()
    assert enrollment_service.compute_progress(db, student.id, course.id) == 0


def test_progress_is_rounded_percentage(client, db, student, make_course, make_assignment, enroll):
    course = make_course()
    first = make_assignment(course, "One")
    make_assignment(course, "Two")
    make_assignment(course, "Three")
    enroll(student, course)

    assert submit(client, student, first).status_code == 200
    db.expire_all()
    assert enrollment_service.get_enrollment(db, student.id, course.id).progress == 33


def test_submissions_drive_progress_to_completion(client, db, admin, student, make_course, make_assignment, enroll):
    course = make_course()
    first = make_assignment(course, "One")
    second = make_assignment(course, "Two")
    enrollment = enroll(student, course)

    assert submit(client, student, first).status_code == 200
    db.expire_all()
    assert db.get(Enrollment, enrollment.id).progress == 50

    assert submit(client, student, second).status_code == 200
    assert submit(client, student, first, "Improved answer").status_code == 200
    db.expire_all()
    assert db.get(Enrollment, enrollment.id).progress == 100

    response = client.patch(
        f"{API}/admin/enrollments/{enrollment.id}",
        json={"status": "completed"},
        headers=auth_headers(admin)
    )
    assert response.status_code == 200
    assert response.json()["status"] == "completed"
    assert response.json()["completed_at"] is not None

    # completing again keeps a single certificate
    response = client.patch(
        f"{API}/admin/enrollments/{enrollment.id}",
        json={"status": "completed"},
        headers=auth_headers(admin)
    )
    assert response.status_code == 200

    db.expire_all()
    certificates = db.query(Certificate).filter(
        Certificate.user_id == student.id,
        Certificate.course_id == course.id
    ).all()
    assert len(certificates) == 1
    assert course.title in certificates[0].title

    response = client.get(f"{API}/profile/certificates", headers=auth_headers(student))
    assert [item["course_title"] for item in response.json()] == [course.title]


def test_leaving_completed_clears_completion_date(client, admin, student, make_course, enroll):
    course = make_course()
    enrollment = enroll(student, course)
    path = f"{API}/admin/enrollments/{enrollment.id}"

    client.patch(path, json={"status": "completed"}, headers=auth_headers(admin))
    response = client.patch(path, json={"status": "enrolled"}, headers=auth_headers(admin))

    assert response.status_code == 200
    assert response.json()["status"] == "enrolled"
    assert response.json()["completed_at"] is None


def test_admin_progress_out_of_range(client, admin, student, make_course, enroll):
    enrollment = enroll(student, make_course())
    response = client.patch(
        f"{API}/admin/enrollments/{enrollment.id}",
        json={"progress": 101},
        headers=auth_headers(admin)
    )
    assert response.status_code == 400


def test_unenroll_removes_enrollment_and_certificate(client, db, admin, student, make_course, enroll):
    course = make_course()
    enrollment = enroll(student, course)
    enrollment_service.set_status(db, Principal(admin.id, admin.role), enrollment.id, status="completed")

    response = client.delete(f"{API}/courses/{course.id}/enrollment", headers=auth_headers(student))
    assert response.status_code == 204

    db.expire_all()
    assert db.query(Enrollment).count() == 0
    assert db.query(Certificate).count() == 0

    response = client.delete(f"{API}/courses/{course.id}/enrollment", headers=auth_headers(student))
    assert response.status_code == 404


def test_admin_enrollment_listing_stats(client, admin, make_user, make_course, enroll):
    course = make_course()
    first = enroll(make_user(), course)
    enroll(make_user(), course)
    client.patch(
        f"{API}/admin/enrollments/{first.id}",
        json={"status": "completed", "progress": 100},
        headers=auth_headers(admin)
    )

    response = client.get(f"{API}/admin/enrollments/", headers=auth_headers(admin))
    assert response.status_code == 200
    body = response.json()
    assert body["total"] == 2
    assert body["stats"]["completed"] == 1
    assert body["stats"]["enrolled"] == 1
    assert body["stats"]["avg_progress"] == 50


def test_students_cannot_manage_enrollments(client, student, make_course, enroll):
    enrollment = enroll(student, make_course())
    response = client.patch(
        f"{API}/admin/enrollments/{enrollment.id}",
        json={"status": "completed"},
        headers=auth_headers(student)
    )
    assert response.status_code == 403
