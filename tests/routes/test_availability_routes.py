from datetime import timedelta

from fastapi import status


def test_availability_for_open_day(client, future_monday):
    response = client.get(f"/api/availability?date={future_monday.isoformat()}")

    assert response.status_code == status.HTTP_200_OK
    body = response.json()
    assert body["date"] == future_monday.isoformat()
    assert [slot["time"] for slot in body["slots"]] == [f"{h:02d}:00" for h in range(8, 18)]


def test_malformed_date_is_400(client, db):
    response = client.get("/api/availability?date=06/03/2024")

    assert response.status_code == status.HTTP_400_BAD_REQUEST
    assert response.json()["code"] == "INVALID_DATE"


def test_past_date_is_400(client, future_monday):
    response = client.get(f"/api/availability?date={(future_monday - timedelta(days=14)).isoformat()}")

    assert response.status_code == status.HTTP_400_BAD_REQUEST
    assert response.json()["code"] == "PAST_DATE"


def test_sessions(client, future_monday):
    response = client.get("/api/availability/sessions?days=10")

    assert response.status_code == status.HTTP_200_OK
    body = response.json()
    assert body["days"] == 10
    assert future_monday.isoformat() in body["sessions"]
