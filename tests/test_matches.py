from datetime import timedelta

from sqlmodel import select

from predictor.database import utcnow
from predictor.models import Comment, Match, Prediction, TeamStat, UserScore


def _new_match_payload(**overrides):
    payload = {
        "home_team": "Arsenal",
        "away_team": "Chelsea",
        "match_date": (utcnow() + timedelta(days=3)).isoformat(),
        "week": 5,
        "day": "Saturday",
    }
    payload.update(overrides)
    return payload


def test_list_matches_empty(client):
    response = client.get("/api/matches")
    assert response.status_code == 200
    assert response.json() == []


def test_create_match_with_forms(client, session, admin, login):
    login(admin)

    response = client.post("/api/matches", json=_new_match_payload(home_form="GGBMG", away_form="mmbgb"))

    assert response.status_code == 200
    match_id = response.json()["id"]
    stats = session.exec(select(TeamStat).where(TeamStat.match_id == match_id)).all()
    assert {stat.team_name: stat.last_five_form for stat in stats} == {"Arsenal": "GGBMG", "Chelsea": "MMBGB"}

    listed = client.get("/api/matches").json()
    assert listed[0]["home_form"] == "GGBMG"
    assert listed[0]["away_form"] == "MMBGB"
    assert listed[0]["can_predict"] is True


def test_create_match_rejects_bad_form(client, session, admin, login):
    login(admin)

    for form in ("GGBM", "GGBMGG", "WWDLW"):
        response = client.post("/api/matches", json=_new_match_payload(home_form=form))
        assert response.status_code == 400

    assert session.exec(select(Match)).all() == []


def test_create_match_requires_admin(client, user, login):
    assert client.post("/api/matches", json=_new_match_payload()).status_code == 401

    login(user)
    response = client.post("/api/matches", json=_new_match_payload())
    assert response.status_code == 403
    assert response.json()["detail"] == "Admin access required"


def test_match_detail(client, make_match, session):
    match = make_match()
    session.add(TeamStat(match_id=match.id, team_name="Arsenal", last_five_form="GGGGG"))
    session.commit()

    response = client.get(f"/api/matches/{match.id}")

    assert response.status_code == 200
    data = response.json()
    assert data["match"]["home_team"] == "Arsenal"
    assert data["stats"][0]["last_five_form"] == "GGGGG"


def test_match_detail_not_found(client):
    response = client.get("/api/matches/404")
    assert response.status_code == 404
    assert response.json()["detail"] == "Match not found"


def test_matches_by_week_in_kickoff_order(client, make_match):
    late = make_match("Liverpool", "Everton", kickoff_in=timedelta(days=2, hours=3), week=2)
    early = make_match("Spurs", "Fulham", kickoff_in=timedelta(days=2), week=2)
    make_match("Brentford", "Wolves", week=3)

    data = client.get("/api/matches/week/2").json()

    assert [m["id"] for m in data] == [early.id, late.id]


def test_update_match_partial_and_forms(client, session, admin, login, make_match):
    match = make_match()
    login(admin)

    response = client.patch(f"/api/matches/{match.id}", json={"day": "Sunday", "away_form": "BBBBB"})

    assert response.status_code == 200
    assert response.json()["day"] == "Sunday"
    assert response.json()["home_team"] == "Arsenal"
    stat = session.exec(select(TeamStat).where(TeamStat.match_id == match.id)).one()
    assert stat.team_name == "Chelsea"

    client.patch(f"/api/matches/{match.id}", json={"away_form": "GBGBG"})
    stat = session.exec(select(TeamStat).where(TeamStat.match_id == match.id)).one()
    assert stat.last_five_form == "GBGBG"


def test_finishing_match_scores_predictions(client, session, admin, login, make_user, make_match, make_prediction):
    alice, bob = make_user("alice"), make_user("bob")
    match = make_match()
    make_prediction(alice, match, 2, 1, "home")
    make_prediction(bob, match, 1, 1, "draw")
    login(admin)

    response = client.patch(f"/api/matches/{match.id}", json={"home_score": 2, "away_score": 1, "is_finished": True})
    assert response.status_code == 200

    scores = {s.user_id: s.total_points for s in session.exec(select(UserScore)).all()}
    assert scores == {alice.id: 3, bob.id: 0}

    # Correcting the score rescores instead of adding on top
    client.patch(f"/api/matches/{match.id}", json={"home_score": 1, "away_score": 1})
    scores = {s.user_id: s.total_points for s in session.exec(select(UserScore)).all()}
    assert scores == {alice.id: 0, bob.id: 3}


def test_finished_requires_both_scores(client, admin, login, make_match):
    match = make_match()
    login(admin)

    assert client.patch(f"/api/matches/{match.id}", json={"is_finished": True}).status_code == 400
    assert client.patch(f"/api/matches/{match.id}", json={"home_score": 1}).status_code == 400
    assert client.patch(f"/api/matches/{match.id}", json={"home_score": -1, "away_score": 0}).status_code == 400


def test_unknown_match_update_is_404(client, admin, login):
    login(admin)
    assert client.patch("/api/matches/99", json={"day": "Monday"}).status_code == 404


def test_delete_match_cascades(client, session, admin, login, make_user, make_match, make_prediction):
    alice = make_user("alice")
    match = make_match()
    other = make_match("Liverpool", "Everton")
    session.add(TeamStat(match_id=match.id, team_name="Arsenal", last_five_form="GGGGG"))
    session.add(Comment(user_id=alice.id, match_id=match.id, content="Up the Arsenal"))
    session.commit()
    make_prediction(alice, match, 2, 1, "home")
    make_prediction(alice, other, 0, 0, "draw")
    login(admin)
    client.patch(f"/api/matches/{match.id}", json={"home_score": 2, "away_score": 1, "is_finished": True})
    assert session.exec(select(UserScore)).one().total_points == 3

    response = client.delete(f"/api/matches/{match.id}")

    assert response.status_code == 200
    assert session.get(Match, match.id) is None
    assert session.exec(select(TeamStat).where(TeamStat.match_id == match.id)).all() == []
    assert session.exec(select(Comment).where(Comment.match_id == match.id)).all() == []
    assert session.exec(select(Prediction).where(Prediction.match_id == match.id)).all() == []
    assert client.get(f"/api/predictions/match/{match.id}").json() == []
    # Prediction on the other match survives
    assert len(session.exec(select(Prediction)).all()) == 1
    # The deleted match no longer counts towards the leaderboard
    assert session.exec(select(UserScore)).all() == []


def test_delete_unknown_match(client, admin, login):
    login(admin)
    assert client.delete("/api/matches/12").status_code == 404


def test_renaming_team_keeps_its_form(client, session, admin, login):
    login(admin)
    match_id = client.post("/api/matches", json=_new_match_payload(home_form="GGGGG", away_form="MMMMM")).json()["id"]

    response = client.patch(f"/api/matches/{match_id}", json={"home_team": "Arsenal FC"})

    assert response.status_code == 200
    detail = client.get(f"/api/matches/{match_id}").json()
    assert detail["match"]["home_form"] == "GGGGG"
    assert detail["match"]["away_form"] == "MMMMM"
    stats = session.exec(select(TeamStat).where(TeamStat.match_id == match_id)).all()
    assert sorted(stat.team_name for stat in stats) == ["Arsenal FC", "Chelsea"]


def test_swapping_teams_swaps_forms(client, admin, login):
    login(admin)
    match_id = client.post("/api/matches", json=_new_match_payload(home_form="GGGGG", away_form="MMMMM")).json()["id"]

    response = client.patch(f"/api/matches/{match_id}", json={"home_team": "Chelsea", "away_team": "Arsenal"})

    assert response.status_code == 200
    match = client.get(f"/api/matches/{match_id}").json()["match"]
    assert match["home_team"] == "Chelsea"
    assert match["home_form"] == "MMMMM"
    assert match["away_form"] == "GGGGG"


def test_rename_with_new_form_uses_the_new_form(client, admin, login):
    login(admin)
    match_id = client.post("/api/matches", json=_new_match_payload(home_form="GGGGG")).json()["id"]

    client.patch(f"/api/matches/{match_id}", json={"home_team": "Arsenal FC", "home_form": "BBBBB"})

    assert client.get(f"/api/matches/{match_id}").json()["match"]["home_form"] == "BBBBB"
