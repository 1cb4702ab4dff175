from conftest import auth_headers, feedback_body


def create(client, principal, body):
    response = client.post("/reports", json=body, headers=auth_headers(principal))
    assert response.status_code == 201, response.text
    return response.json()


def test_create_feedback_and_close(client, student, admin):
    report = create(client, student, feedback_body(details={"punctuality": 2, "driverBehavior": 4}))

    assert report["status"] == "Pending"
    assert report["authorName"] == "Asha"
    assert report["busNo"] == "KA-01-F-1234"
    assert report["details"]["driverBehavior"] == 4
    assert report["attachments"] == [{"url": "/a/1", "name": None, "id": None}]
    assert report["submittedOn"]

    response = client.patch(
        f"/reports/{report['id']}/status",
        json={"status": "Closed", "resolution": "Driver retrained"},
        headers=auth_headers(admin),
    )
    assert response.status_code == 200
    closed = response.json()
    assert closed["status"] == "Closed"
    assert closed["resolution"]["text"] == "Driver retrained"
    assert closed["resolution"]["resolvedBy"] == "Admin User"
    assert len(closed["conversation"]) == 1
    assert closed["conversation"][0]["authorName"] == "System"
    assert closed["submittedOn"] == report["submittedOn"]


def test_create_feedback_validation(client, student):
    headers = auth_headers(student)

    response = client.post("/reports", json=feedback_body(attachments=[]), headers=headers)
    assert response.status_code == 400
    assert response.json()["fields"] == ["attachments"]

    response = client.post("/reports", json=feedback_body(route=" "), headers=headers)
    assert response.status_code == 400
    assert "route" in response.json()["fields"]

    response = client.post("/reports", json=feedback_body(details={"punctuality": 9}), headers=headers)
    assert response.status_code == 400

    response = client.post("/reports", json=feedback_body(userId=42), headers=headers)
    assert response.status_code == 400


def test_create_requires_authentication(client):
    response = client.post("/reports", json=feedback_body())
    assert response.status_code == 401


def test_found_item_claimed_by_admin_edit(client, student, admin):
    found = create(client, student, {
        "kind": "Found",
        "item": "Calculator",
        "route": "S2: Porur",
        "description": "Casio fx-991, under the last row",
    })
    assert found["status"] == "unclaimed"

    response = client.put(
        f"/reports/{found['id']}",
        json={"status": "claimed", "userId": 999, "busNo": "ignored"},
        headers=auth_headers(admin),
    )
    assert response.status_code == 200
    data = response.json()
    assert data["status"] == "claimed"
    assert data["authorUserId"] == student.user_id
    assert data["busNo"] is None


def test_only_admin_may_edit_fields(client, student):
    report = create(client, student, feedback_body())
    response = client.put(f"/reports/{report['id']}", json={"description": "x"}, headers=auth_headers(student))
    assert response.status_code == 403


def test_status_errors_map_to_client_errors(client, student, admin):
    report = create(client, student, feedback_body())
    url = f"/reports/{report['id']}/status"

    response = client.patch(url, json={"status": "InProgress"}, headers=auth_headers(student))
    assert response.status_code == 403

    response = client.patch(url, json={"status": "Closed"}, headers=auth_headers(student))
    assert response.status_code == 200

    response = client.patch(url, json={"status": "Closed"}, headers=auth_headers(admin))
    assert response.status_code == 409
    assert response.json()["kind"] == "InvalidTransition"


def test_conversation_thread(client, student, admin):
    report = create(client, student, feedback_body())
    url = f"/reports/{report['id']}/conversation"

    response = client.post(url, json={"message": "Any update?"}, headers=auth_headers(student))
    assert response.status_code == 201
    response = client.post(url, json={"message": "Looking into it"}, headers=auth_headers(admin))
    assert [e["message"] for e in response.json()["conversation"]] == ["Any update?", "Looking into it"]

    response = client.post(url, json={"message": ""}, headers=auth_headers(student))
    assert response.status_code == 400

    client.patch(f"/reports/{report['id']}/status", json={"status": "Closed"}, headers=auth_headers(admin))
    response = client.post(url, json={"message": "Thanks"}, headers=auth_headers(student))
    assert response.status_code == 409
    assert response.json()["kind"] == "ReportClosed"


def test_reports_are_private_to_their_author(client, student, other_student, admin):
    mine = create(client, student, feedback_body())
    create(client, other_student, {"kind": "Lost", "item": "Wallet", "route": "5A", "description": "Brown"})

    response = client.get(f"/reports/{mine['id']}", headers=auth_headers(other_student))
    assert response.status_code == 403

    listed = client.get("/reports", headers=auth_headers(student)).json()
    assert [r["id"] for r in listed] == [mine["id"]]

    everything = client.get("/reports", headers=auth_headers(admin)).json()
    assert len(everything) == 2

    lost_found = client.get("/reports", params={"kind": "LostFound"}, headers=auth_headers(admin)).json()
    assert [r["kind"] for r in lost_found] == ["Lost"]


def test_list_order_is_newest_first_by_default(client, student):
    first = create(client, student, feedback_body())
    second = create(client, student, feedback_body())
    headers = auth_headers(student)

    newest = [r["id"] for r in client.get("/reports", headers=headers).json()]
    oldest = [r["id"] for r in client.get("/reports", params={"order": "asc"}, headers=headers).json()]

    assert oldest == [first["id"], second["id"]]
    assert set(newest) == set(oldest)


def test_delete_report(client, student, other_student):
    report = create(client, student, feedback_body())
    url = f"/reports/{report['id']}"

    assert client.delete(url, headers=auth_headers(other_student)).status_code == 403
    assert client.delete(url, headers=auth_headers(student)).status_code == 204
    response = client.get(url, headers=auth_headers(student))
    assert response.status_code == 404
    assert response.json()["kind"] == "NotFound"


def test_malformed_report_id_is_a_validation_error(client, student):
    response = client.get("/reports/not-a-number", headers=auth_headers(student))
    assert response.status_code == 400
    assert response.json()["kind"] == "ValidationError"
