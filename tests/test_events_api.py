# tests/test_events_api.py
from http import HTTPStatus


def _build_event_payload(
    title: str = "Swimming lesson",
    start_time: str = "2026-02-02T17:00:00",
    end_time: str | None = "2026-02-02T18:00:00",
    participant_ids: list[str] | None = None,
    recurrence: dict | None = None,
    all_day: bool = False,
) -> dict:
    payload = {
        "title": title,
        "start_time": start_time,
        "end_time": end_time,
        "all_day": all_day,
        "category": "SPORT",
        "participant_ids": participant_ids or [],
    }
    if recurrence is not None:
        payload["recurrence"] = recurrence
    return payload


def test_create_member_and_list(client, make_member):
    member_id = make_member("Anna", "#f97316")

    response = client.get("/members")
    assert response.status_code == HTTPStatus.OK
    members = {m["id"]: m for m in response.json()}
    assert members[member_id]["name"] == "Anna"
    assert members[member_id]["color"] == "#f97316"

    single = client.get(f"/members/{member_id}")
    assert single.status_code == HTTPStatus.OK
    assert single.json()["name"] == "Anna"


def test_get_unknown_member_returns_404(client):
    response = client.get("/members/does-not-exist")
    assert response.status_code == HTTPStatus.NOT_FOUND


def test_create_event_with_recurrence(client, make_member):
    anna = make_member("Anna")
    ben = make_member("Ben")

    payload = _build_event_payload(
        participant_ids=[anna, ben],
        recurrence={
            "frequency": "WEEKLY",
            "days_of_week": ["MO", "WE"],
            "end": {"type": "date", "end_date": "2026-02-16"},
        },
    )
    response = client.post("/events", json=payload)
    assert response.status_code == HTTPStatus.CREATED, response.text

    data = response.json()
    assert isinstance(data["id"], str)
    assert data["title"] == "Swimming lesson"
    assert data["category"] == "SPORT"
    assert data["start_time"] == "2026-02-02T17:00:00"
    assert {p["member_id"] for p in data["participants"]} == {anna, ben}
    assert {p["name"] for p in data["participants"]} == {"Anna", "Ben"}
    assert data["recurrence"]["frequency"] == "WEEKLY"
    assert data["recurrence"]["days_of_week"] == ["MO", "WE"]
    assert data["recurrence_description"] == "Weekly (Mon, Wed), until 2026-02-16"

    fetched = client.get(f"/events/{data['id']}")
    assert fetched.status_code == HTTPStatus.OK
    assert fetched.json() == data


def test_create_event_rejects_unknown_participant(client):
    payload = _build_event_payload(participant_ids=["nobody"])

    response = client.post("/events", json=payload)

    assert response.status_code == HTTPStatus.BAD_REQUEST
    assert "nobody" in response.json()["detail"]


def test_create_event_rejects_end_before_start(client):
    payload = _build_event_payload(
        start_time="2026-02-02T17:00:00",
        end_time="2026-02-02T16:00:00",
    )

    response = client.post("/events", json=payload)

    assert response.status_code == HTTPStatus.UNPROCESSABLE_ENTITY


def test_create_event_normalizes_zoned_times(client):
    all_day = client.post(
        "/events",
        json=_build_event_payload(
            title="Holiday",
            start_time="2026-03-01T00:00:00+01:00",
            end_time="2026-03-01T23:59:00+01:00",
            all_day=True,
        ),
    )
    assert all_day.status_code == HTTPStatus.CREATED, all_day.text
    assert all_day.json()["start_time"] == "2026-03-01T00:00:00"
    assert all_day.json()["end_time"] == "2026-03-01T23:59:00"

    timed = client.post(
        "/events",
        json=_build_event_payload(
            start_time="2026-03-01T09:00:00+01:00",
            end_time="2026-03-01T10:00:00+01:00",
        ),
    )
    assert timed.status_code == HTTPStatus.CREATED, timed.text
    assert timed.json()["start_time"] == "2026-03-01T08:00:00"


def test_create_event_rejects_invalid_rule(client):
    payload = _build_event_payload(
        recurrence={"frequency": "WEEKLY", "day_of_month": 5},
    )

    response = client.post("/events", json=payload)

    assert response.status_code == HTTPStatus.UNPROCESSABLE_ENTITY


def test_list_events_expands_series_inside_window(client, make_member):
    anna = make_member("Anna")
    series = client.post(
        "/events",
        json=_build_event_payload(
            title="Piano",
            start_time="2026-04-06T17:00:00",
            end_time="2026-04-06T17:45:00",
            participant_ids=[anna],
            recurrence={
                "frequency": "WEEKLY",
                "days_of_week": ["MO", "WE"],
                "end": {"type": "date", "end_date": "2026-04-20"},
            },
        ),
    ).json()
    single = client.post(
        "/events",
        json=_build_event_payload(
            title="Dentist",
            start_time="2026-04-09T10:00:00",
            end_time=None,
            participant_ids=[anna],
        ),
    ).json()

    response = client.get(
        "/events",
        params={"start": "2026-04-07T00:00:00", "end": "2026-04-16T00:00:00"},
    )
    assert response.status_code == HTTPStatus.OK

    ours = [e for e in response.json() if e["id"] in (series["id"], single["id"])]
    assert [(e["title"], e["start_time"]) for e in ours] == [
        ("Piano", "2026-04-08T17:00:00"),
        ("Dentist", "2026-04-09T10:00:00"),
        ("Piano", "2026-04-13T17:00:00"),
        ("Piano", "2026-04-15T17:00:00"),
    ]

    occurrence = ours[0]
    assert occurrence["original_event_id"] == series["id"]
    assert occurrence["occurrence_date"] == "2026-04-08T17:00:00"
    assert occurrence["end_time"] == "2026-04-08T17:45:00"
    assert ours[1]["original_event_id"] is None


def test_list_events_without_window_returns_stored_events(client):
    created = client.post(
        "/events",
        json=_build_event_payload(title="Stored", start_time="2026-05-01T09:00:00", end_time=None),
    ).json()

    response = client.get("/events")

    assert response.status_code == HTTPStatus.OK
    ids = [e["id"] for e in response.json()]
    assert created["id"] in ids


def test_list_events_rejects_bad_window(client):
    only_start = client.get("/events", params={"start": "2026-04-07T00:00:00"})
    assert only_start.status_code == HTTPStatus.BAD_REQUEST

    inverted = client.get(
        "/events",
        params={"start": "2026-04-07T00:00:00", "end": "2026-04-01T00:00:00"},
    )
    assert inverted.status_code == HTTPStatus.BAD_REQUEST


def test_list_events_handles_series_near_last_representable_date(client):
    response = client.post(
        "/events",
        json=_build_event_payload(
            title="Far future",
            start_time="9999-12-30T10:00:00",
            end_time="9999-12-30T11:00:00",
            recurrence={"frequency": "DAILY"},
        ),
    )
    assert response.status_code == HTTPStatus.CREATED, response.text
    series_id = response.json()["id"]

    response = client.get(
        "/events",
        params={"start": "9999-12-29T00:00:00", "end": "9999-12-31T23:00:00"},
    )
    assert response.status_code == HTTPStatus.OK

    ours = [e for e in response.json() if e["id"] == series_id]
    assert [e["start_time"] for e in ours] == ["9999-12-30T10:00:00", "9999-12-31T10:00:00"]


def test_update_event_fields_participants_and_recurrence(client, make_member):
    anna = make_member("Anna")
    ben = make_member("Ben")
    created = client.post(
        "/events",
        json=_build_event_payload(
            title="Football",
            start_time="2026-06-01T16:00:00",
            end_time="2026-06-01T17:30:00",
            participant_ids=[anna],
            recurrence={"frequency": "DAILY", "end": {"type": "count", "count": 3}},
        ),
    ).json()
    event_id = created["id"]

    patch = client.patch(
        f"/events/{event_id}",
        json={
            "title": "Football practice",
            "participant_ids": [ben, anna],
            "recurrence": {"frequency": "MONTHLY", "day_of_month": 31},
        },
    )
    assert patch.status_code == HTTPStatus.OK, patch.text
    updated = patch.json()
    assert updated["title"] == "Football practice"
    assert {p["member_id"] for p in updated["participants"]} == {anna, ben}
    assert updated["recurrence"]["frequency"] == "MONTHLY"
    assert updated["recurrence"]["day_of_month"] == 31
    assert updated["recurrence"]["end"] == {"type": "never"}
    # untouched fields are kept
    assert updated["start_time"] == "2026-06-01T16:00:00"
    assert updated["category"] == "SPORT"

    cleared = client.patch(
        f"/events/{event_id}",
        json={"participant_ids": [ben], "recurrence": None},
    )
    assert cleared.status_code == HTTPStatus.OK
    body = cleared.json()
    assert [p["member_id"] for p in body["participants"]] == [ben]
    assert body["recurrence"] is None
    assert body["recurrence_description"] is None


def test_update_event_rejects_end_before_start(client):
    created = client.post(
        "/events",
        json=_build_event_payload(start_time="2026-06-10T10:00:00", end_time="2026-06-10T11:00:00"),
    ).json()

    response = client.patch(
        f"/events/{created['id']}",
        json={"start_time": "2026-06-10T12:00:00"},
    )

    assert response.status_code == HTTPStatus.BAD_REQUEST


def test_update_and_get_unknown_event_return_404(client):
    assert client.get("/events/missing").status_code == HTTPStatus.NOT_FOUND
    assert client.patch("/events/missing", json={"title": "x"}).status_code == HTTPStatus.NOT_FOUND


def test_delete_event(client, make_member):
    anna = make_member("Anna")
    response = client.post(
        "/events",
        json=_build_event_payload(
            start_time="2026-07-01T10:00:00",
            end_time="2026-07-01T11:00:00",
            participant_ids=[anna],
            recurrence={"frequency": "YEARLY"},
        ),
    )
    assert response.status_code == HTTPStatus.CREATED, response.text
    created = response.json()

    response = client.delete(f"/events/{created['id']}")
    assert response.status_code == HTTPStatus.NO_CONTENT

    assert client.get(f"/events/{created['id']}").status_code == HTTPStatus.NOT_FOUND
    assert client.delete(f"/events/{created['id']}").status_code == HTTPStatus.NOT_FOUND
