from conftest import API, auth_headers
from skillportal.models import DiscussionReply, DiscussionThread


def create_thread(client, user, title="Stuck on recursion", content="Any tips?", course_id=None):
    return client.post(
        f"{API}/discussions/",
        json={"title": title, "content": content, "course_id": course_id},
        headers=auth_headers(user)
    )


def reply(client, user, thread_id, content="Draw the call tree"):
    return client.post(
        f"{API}/discussions/{thread_id}/replies",
        json={"content": content},
        headers=auth_headers(user)
    )


def test_thread_with_replies(client, make_user, make_course):
    author, helper = make_user(), make_user()
    course = make_course()

    response = create_thread(client, author, course_id=course.id)
    assert response.status_code == 201
    thread_id = response.json()["id"]

    assert reply(client, helper, thread_id).status_code == 201
    assert reply(client, author, thread_id, "Thanks!").status_code == 201

    response = client.get(f"{API}/discussions/{thread_id}", headers=auth_headers(helper))
    assert response.status_code == 200
    body = response.json()
    assert body["author_name"] == author.name
    assert [item["content"] for item in body["replies"]] == ["Draw the call tree", "Thanks!"]

    response = client.get(f"{API}/courses/{course.id}/discussions", headers=auth_headers(helper))
    assert [(item["id"], item["reply_count"]) for item in response.json()] == [(thread_id, 2)]


def test_thread_validation(client, student):
    assert create_thread(client, student, title="  ").status_code == 400
    assert create_thread(client, student, content="").status_code == 400
    assert create_thread(client, student, course_id=9999).status_code == 404
    assert reply(client, student, 9999).status_code == 404


def test_only_author_or_admin_deletes_thread(client, db, admin, make_user):
    author, other = make_user(), make_user()
    thread_id = create_thread(client, author).json()["id"]
    reply(client, other, thread_id)
    reply(client, other, thread_id, "Second reply")

    response = client.delete(f"{API}/discussions/{thread_id}", headers=auth_headers(other))
    assert response.status_code == 403

    response = client.delete(f"{API}/discussions/{thread_id}", headers=auth_headers(author))
    assert response.status_code == 204

    db.expire_all()
    assert db.query(DiscussionThread).count() == 0
    assert db.query(DiscussionReply).count() == 0

    thread_id = create_thread(client, author).json()["id"]
    response = client.delete(f"{API}/discussions/{thread_id}", headers=auth_headers(admin))
    assert response.status_code == 204

    response = client.delete(f"{API}/discussions/{thread_id}", headers=auth_headers(admin))
    assert response.status_code == 404


def test_reply_delete_authorization(client, db, admin, make_user):
    author, replier, stranger = make_user(), make_user(), make_user()
    thread_id = create_thread(client, author).json()["id"]
    first = reply(client, replier, thread_id).json()["id"]
    second = reply(client, replier, thread_id, "Another").json()["id"]

    path = f"{API}/discussions/{thread_id}/replies"
    assert client.delete(f"{path}/{first}", headers=auth_headers(stranger)).status_code == 403
    # the thread author does not own the reply
    assert client.delete(f"{path}/{first}", headers=auth_headers(author)).status_code == 403
    assert client.delete(f"{path}/{first}", headers=auth_headers(replier)).status_code == 204
    assert client.delete(f"{path}/{second}", headers=auth_headers(admin)).status_code == 204
    assert client.delete(f"{path}/{second}", headers=auth_headers(admin)).status_code == 404


def test_bulk_reply_delete_by_thread_author(client, db, make_user):
    author, replier = make_user(), make_user()
    thread_id = create_thread(client, author).json()["id"]
    reply(client, replier, thread_id)
    reply(client, replier, thread_id, "Another")

    path = f"{API}/discussions/{thread_id}/replies"
    assert client.delete(path, headers=auth_headers(replier)).status_code == 403

    response = client.delete(path, headers=auth_headers(author))
    assert response.status_code == 200
    assert response.json()["deleted"] == 2

    db.expire_all()
    assert db.query(DiscussionReply).count() == 0
    assert db.query(DiscussionThread).count() == 1
