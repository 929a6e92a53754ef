from sqlmodel import select

from predictor.models import Comment
from predictor.services.comments import create_comment, list_comments


def test_post_and_list_comments(client, user, login, make_match):
    match = make_match()
    login(user)

    first = client.post(f"/api/matches/{match.id}/comments", json={"content": "  Arsenal to win  "})
    second = client.post(f"/api/matches/{match.id}/comments", json={"content": "Draw for me"})

    assert first.status_code == 200
    assert first.json()["content"] == "Arsenal to win"

    comments = client.get(f"/api/matches/{match.id}/comments").json()
    assert [c["id"] for c in comments] == [second.json()["id"], first.json()["id"]]
    assert comments[0]["username"] == "testuser"
    assert comments[0]["name"] == "Testuser"


def test_comments_are_public(client, session, user, make_match):
    match = make_match()
    create_comment(session, user.id, match.id, "Hello")

    response = client.get(f"/api/matches/{match.id}/comments")

    assert response.status_code == 200
    assert len(response.json()) == 1


def test_post_comment_requires_login(client, make_match):
    match = make_match()
    response = client.post(f"/api/matches/{match.id}/comments", json={"content": "hi"})
    assert response.status_code == 401


def test_comment_content_is_validated(client, session, user, login, make_match):
    match = make_match()
    login(user)

    assert client.post(f"/api/matches/{match.id}/comments", json={"content": "   "}).status_code == 400
    assert client.post(f"/api/matches/{match.id}/comments", json={"content": "x" * 1001}).status_code == 400
    assert client.post(f"/api/matches/{match.id}/comments", json={"content": "x" * 1000}).status_code == 200
    assert client.post("/api/matches/999/comments", json={"content": "hi"}).status_code == 404

    assert len(session.exec(select(Comment)).all()) == 1


def test_reply_keeps_parent(session, user, make_match):
    match = make_match()
    parent = create_comment(session, user.id, match.id, "Who wins?")
    reply = create_comment(session, user.id, match.id, "Arsenal", parent_id=parent.id)

    assert reply.parent_id == parent.id
    assert len(list_comments(session, match.id)) == 2


def test_delete_comment_permissions(client, session, make_user, login, make_match):
    author, stranger, admin = make_user("author"), make_user("stranger"), make_user("boss", is_admin=True)
    match = make_match()
    mine = create_comment(session, author.id, match.id, "mine")
    theirs = create_comment(session, author.id, match.id, "also mine")

    login(stranger)
    response = client.delete(f"/api/comments/{mine.id}")
    assert response.status_code == 403
    assert response.json()["detail"] == "You can only delete your own comments"

    login(author)
    assert client.delete(f"/api/comments/{mine.id}").status_code == 200

    login(admin)
    assert client.delete(f"/api/comments/{theirs.id}").status_code == 200

    assert session.exec(select(Comment)).all() == []
    assert client.delete(f"/api/comments/{theirs.id}").status_code == 404
