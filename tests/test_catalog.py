from conftest import API, auth_headers
from skillportal.models import AdminLog, Course


def test_public_course_listing_hides_drafts(client, make_course):
    published = make_course("Published")
    draft = make_course("Draft", published=False)

    response = client.get(f"{API}/courses/")
    assert response.status_code == 200
    body = response.json()
    assert [course["id"] for course in body["courses"]] == [published.id]
    assert body["total"] == 1

    assert client.get(f"{API}/courses/{published.id}").status_code == 200
    assert client.get(f"{API}/courses/{draft.id}").status_code == 404


def test_admin_sees_drafts(client, admin, make_course):
    draft = make_course("Draft", published=False)

    response = client.get(f"{API}/courses/{draft.id}", headers=auth_headers(admin))
    assert response.status_code == 200
    assert response.json()["is_published"] is False

    response = client.get(f"{API}/admin/courses/", headers=auth_headers(admin))
    assert [course["id"] for course in response.json()["courses"]] == [draft.id]


def test_course_search(client, make_course):
    make_course("Intro to Rust")
    make_course("Python Basics")
    response = client.get(f"{API}/courses/", params={"search": "python"})
    assert [course["title"] for course in response.json()["courses"]] == ["Python Basics"]


def test_admin_course_lifecycle(client, db, admin):
    headers = auth_headers(admin)

    response = client.post(f"{API}/admin/courses/", json={"title": "Data Science"}, headers=headers)
    assert response.status_code == 201
    assert response.json()["is_published"] is True
    assert response.json()["created_by_id"] == admin.id

    response = client.post(
        f"{API}/admin/courses/",
        json={"title": "Drafted", "publish": False},
        headers=headers
    )
    course_id = response.json()["id"]
    assert response.json()["is_published"] is False

    response = client.post(f"{API}/admin/courses/{course_id}/publish", headers=headers)
    assert response.json()["published_at"] is not None

    response = client.put(
        f"{API}/admin/courses/{course_id}",
        json={"description": "Updated"},
        headers=headers
    )
    assert response.json()["description"] == "Updated"

    response = client.post(f"{API}/admin/courses/{course_id}/unpublish", headers=headers)
    assert response.json()["is_published"] is False

    response = client.delete(f"{API}/admin/courses/{course_id}", headers=headers)
    assert response.status_code == 200

    db.expire_all()
    assert db.query(Course).count() == 1
    actions = [log.action for log in db.query(AdminLog).order_by(AdminLog.id).all()]
    assert actions == ["create", "create", "publish", "update", "unpublish", "delete"]


def test_course_with_unknown_skill(client, admin):
    response = client.post(
        f"{API}/admin/courses/",
        json={"title": "Orphan", "skill_id": 9999},
        headers=auth_headers(admin)
    )
    assert response.status_code == 404


def test_students_cannot_create_courses(client, student):
    response = client.post(f"{API}/admin/courses/", json={"title": "Nope"}, headers=auth_headers(student))
    assert response.status_code == 403


def test_skill_management(client, admin, student):
    headers = auth_headers(admin)

    response = client.post(
        f"{API}/admin/skills/",
        json={"name": "Python", "category": "Programming"},
        headers=headers
    )
    assert response.status_code == 201
    skill_id = response.json()["id"]

    response = client.post(f"{API}/admin/skills/", json={"name": "Python"}, headers=headers)
    assert response.status_code == 409

    response = client.get(f"{API}/skills/")
    assert [skill["name"] for skill in response.json()] == ["Python"]

    client.post(f"{API}/user-skills/", json={"skill_id": skill_id, "level": 4}, headers=auth_headers(student))
    response = client.get(f"{API}/admin/skills/", headers=headers)
    assert response.json()[0]["user_count"] == 1

    response = client.delete(f"{API}/admin/skills/{skill_id}", headers=headers)
    assert response.status_code == 200
    assert client.get(f"{API}/skills/").json() == []


def test_user_skill_levels(client, db, make_user):
    from skillportal.models import Skill

    skill = Skill(name="SQL")
    db.add(skill)
    db.commit()
    owner, other = make_user(), make_user()
    headers = auth_headers(owner)

    for level in (0, 11):
        response = client.post(f"{API}/user-skills/", json={"skill_id": skill.id, "level": level}, headers=headers)
        assert response.status_code == 400
        assert response.json()["detail"] == "Level must be between 1 and 10"

    response = client.post(f"{API}/user-skills/", json={"skill_id": skill.id, "level": 1}, headers=headers)
    assert response.status_code == 201
    user_skill_id = response.json()["id"]
    assert response.json()["skill"]["name"] == "SQL"

    response = client.post(f"{API}/user-skills/", json={"skill_id": skill.id, "level": 5}, headers=headers)
    assert response.status_code == 409

    response = client.patch(f"{API}/user-skills/{user_skill_id}", json={"level": 10}, headers=headers)
    assert response.json()["level"] == 10

    response = client.patch(
        f"{API}/user-skills/{user_skill_id}",
        json={"level": 3},
        headers=auth_headers(other)
    )
    assert response.status_code == 404

    assert client.delete(f"{API}/user-skills/{user_skill_id}", headers=headers).status_code == 204
    assert client.get(f"{API}/user-skills/", headers=headers).json() == []


def test_profile_update(client, student):
    headers = auth_headers(student)
    response = client.patch(
        f"{API}/profile/",
        json={"university": "State University", "branch": "CSE"},
        headers=headers
    )
    assert response.status_code == 200
    assert response.json()["university"] == "State University"
    assert response.json()["name"] == student.name

    assert client.get(f"{API}/profile/", headers=headers).json()["branch"] == "CSE"


def test_admin_user_management(client, admin, student):
    headers = auth_headers(admin)

    response = client.get(f"{API}/admin/users/", params={"role": "student"}, headers=headers)
    assert [user["id"] for user in response.json()["users"]] == [student.id]

    response = client.patch(f"{API}/admin/users/{student.id}", json={"role": "instructor"}, headers=headers)
    assert response.json()["role"] == "instructor"

    response = client.patch(f"{API}/admin/users/{admin.id}", json={"role": "student"}, headers=headers)
    assert response.status_code == 403

    assert client.delete(f"{API}/admin/users/{admin.id}", headers=headers).status_code == 403
    assert client.delete(f"{API}/admin/users/{student.id}", headers=headers).status_code == 200


def test_course_listing_pages_in_the_database(client, admin, make_course):
    oldest = make_course("First")
    middle = make_course("Second")
    make_course("Third")
    draft = make_course("Draft", published=False)

    response = client.get(f"{API}/courses/", params={"skip": 1, "limit": 2})
    body = response.json()
    assert body["total"] == 3
    assert [course["id"] for course in body["courses"]] == [middle.id, oldest.id]

    response = client.get(f"{API}/admin/courses/", params={"published": False}, headers=auth_headers(admin))
    body = response.json()
    assert body["total"] == 1
    assert [course["id"] for course in body["courses"]] == [draft.id]

    response = client.get(f"{API}/admin/courses/", params={"published": True, "limit": 1}, headers=auth_headers(admin))
    assert response.json()["total"] == 3
    assert len(response.json()["courses"]) == 1


def test_updates_reject_null_for_required_fields(client, admin, student, make_course):
    headers = auth_headers(admin)
    course = make_course("Algorithms")
    skill_id = client.post(f"{API}/admin/skills/", json={"name": "Go"}, headers=headers).json()["id"]

    response = client.put(f"{API}/admin/courses/{course.id}", json={"title": None}, headers=headers)
    assert response.status_code == 422
    response = client.put(f"{API}/admin/skills/{skill_id}", json={"name": None}, headers=headers)
    assert response.status_code == 422
    response = client.patch(f"{API}/profile/", json={"name": None}, headers=auth_headers(student))
    assert response.status_code == 422
    response = client.patch(f"{API}/admin/users/{student.id}", json={"is_active": None}, headers=headers)
    assert response.status_code == 422

    response = client.put(f"{API}/admin/courses/{course.id}", json={"description": None}, headers=headers)
    assert response.status_code == 200
    assert response.json()["title"] == "Algorithms"


def test_admin_cannot_deactivate_self(client, admin, student):
    headers = auth_headers(admin)

    response = client.patch(f"{API}/admin/users/{admin.id}", json={"is_active": False}, headers=headers)
    assert response.status_code == 403
    assert client.get(f"{API}/auth/me", headers=headers).status_code == 200

    response = client.patch(f"{API}/admin/users/{student.id}", json={"is_active": False}, headers=headers)
    assert response.json()["is_active"] is False
