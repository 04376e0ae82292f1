from datetime import datetime

from conftest import API, auth_headers
from skillportal.core.security import Principal
from skillportal.services import enrollment as enrollment_service
from skillportal.services.analytics import _month_start, growth
from skillportal.services.metrics import percentage, round_half_up, rounded_mean


def test_rounding_helpers():
    assert round_half_up(2.5) == 3
    assert round_half_up(2.4999) == 2
    assert percentage(1, 3) == 33
    assert percentage(2, 3) == 67
    assert percentage(5, 0) == 0
    assert rounded_mean([]) is None
    assert rounded_mean([70, 85]) == 78
    assert growth(15, 10) == 50
    assert growth(3, 0) == 0


def test_month_start_crosses_year_boundaries():
    now = datetime(2026, 2, 15, 10, 30)
    assert _month_start(now, 0) == datetime(2026, 2, 1)
    assert _month_start(now, 3) == datetime(2025, 11, 1)
    assert _month_start(datetime(2026, 12, 3), -1) == datetime(2027, 1, 1)


def seed(db, admin, make_user, make_course, make_assignment, enroll):
    first, second = make_user(), make_user()
    popular = make_course("Popular", creator=admin)
    quiet = make_course("Quiet", creator=admin)
    make_course("Hidden", published=False)
    make_assignment(popular, "Essay")

    done = enroll(first, popular)
    enroll(second, popular)
    enroll(first, quiet)
    enrollment_service.set_status(db, Principal(admin.id, admin.role), done.id, status="completed")
    return first, second, popular, quiet


def test_admin_dashboard(client, db, admin, make_user, make_course, make_assignment, enroll):
    seed(db, admin, make_user, make_course, make_assignment, enroll)

    response = client.get(f"{API}/admin/dashboard", headers=auth_headers(admin))
    assert response.status_code == 200
    body = response.json()
    assert body["users"] == {"total": 3, "students": 2, "instructors": 0, "admins": 1}
    assert body["courses"] == {"total": 3, "published": 2, "draft": 1}
    assert body["enrollments"] == {"total": 3, "completed": 1, "completion_rate": 33}
    assert body["assignments"] == 1
    assert body["certificates"] == 1


def test_admin_analytics(client, db, admin, make_user, make_course, make_assignment, enroll):
    first, _, popular, quiet = seed(db, admin, make_user, make_course, make_assignment, enroll)

    response = client.get(f"{API}/admin/analytics", headers=auth_headers(admin))
    assert response.status_code == 200
    body = response.json()

    assert body["total_users"] == 3
    assert body["active_courses"] == 2
    assert body["completions"] == 1
    assert body["engagement_rate"] == 100
    assert body["completion_rate"] == 33
    assert body["submission_rate"] == 0
    assert body["user_growth"] == 0

    monthly = body["monthly_user_growth"]
    assert len(monthly) == 6
    assert monthly[-1] == {"month": datetime.utcnow().strftime("%b %Y"), "users": 3}
    assert sum(item["users"] for item in monthly) == 3

    top = body["popular_courses"]
    assert [course["id"] for course in top] == [popular.id, quiet.id]
    assert top[0]["enrollments"] == 2
    assert top[0]["completions"] == 1
    assert top[0]["completion_rate"] == 50
    assert top[0]["instructor"] == admin.name

    roles = {item["role"]: item for item in body["role_distribution"]}
    assert roles["student"]["count"] == 2
    assert roles["student"]["percentage"] == 67

    kinds = [item["type"] for item in body["recent_activity"]]
    assert kinds.count("enrollment") == 3
    assert kinds.count("certificate") == 1
    assert len(body["recent_activity"]) <= 20

    assert body["assignment_analytics"][0]["title"] == "Essay"
    assert body["assignment_analytics"][0]["enrolled_students"] == 2


def test_analytics_are_admin_only(client, student):
    assert client.get(f"{API}/admin/analytics", headers=auth_headers(student)).status_code == 403
    assert client.get(f"{API}/admin/dashboard", headers=auth_headers(student)).status_code == 403


def test_student_dashboard(client, db, admin, make_user, make_course, make_assignment, enroll):
    first, _, _, _ = seed(db, admin, make_user, make_course, make_assignment, enroll)

    response = client.get(f"{API}/profile/dashboard", headers=auth_headers(first))
    assert response.status_code == 200
    body = response.json()
    assert body["stats"]["enrolled_courses"] == 2
    assert body["stats"]["completed_courses"] == 1
    assert body["stats"]["in_progress_courses"] == 1
    assert body["stats"]["certificates"] == 1
    assert body["stats"]["avg_progress"] == 0
    assert len(body["recent_courses"]) == 2


def test_admin_logs_filtering(client, admin):
    headers = auth_headers(admin)
    client.post(f"{API}/admin/skills/", json={"name": "Go"}, headers=headers)
    client.post(f"{API}/admin/courses/", json={"title": "Go Basics"}, headers=headers)

    response = client.get(f"{API}/admin/logs", params={"entity_type": "course"}, headers=headers)
    assert response.status_code == 200
    body = response.json()
    assert body["total"] == 1
    assert body["logs"][0]["action"] == "create"
    assert body["logs"][0]["user_id"] == admin.id
    assert set(body["logs"][0]) == {
        "id", "user_id", "action", "entity_type", "entity_id", "details", "ip_address", "created_at"
    }
