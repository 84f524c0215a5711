from conftest import session_row

URL = "/api/v1/sheets"


def test_default_sheets_are_seeded(client):
    response = client.get(URL)
    assert response.status_code == 200
    names = [s["name"] for s in response.json()]
    assert names == ["cam 1", "cam 2", "miami west", "station 1", "station 2", "station 3"]


def test_student_count(client, admin_headers):
    client.post(
        "/api/v1/bulk-import/sessions",
        json={
            "excelData": [session_row("1", "A", "0100"), session_row("2", "B", "0101")],
            "sheetName": "station 3",
            "sessionNumber": 1,
            "hwColumn": "hw1",
        },
        headers=admin_headers,
    )
    counts = {s["name"]: s["student_count"] for s in client.get(URL).json()}
    assert counts["station 3"] == 2
    assert counts["cam 1"] == 0


def test_create_sheet(client, admin_headers):
    response = client.post(URL, json={"name": " zayed 1 "}, headers=admin_headers)
    assert response.status_code == 200
    assert "zayed 1" in [s["name"] for s in client.get(URL).json()]

    duplicate = client.post(URL, json={"name": "zayed 1"}, headers=admin_headers)
    assert duplicate.status_code == 400
    assert duplicate.json()["detail"] == "Sheet already exists"


def test_create_sheet_needs_name(client, admin_headers):
    assert client.post(URL, json={"name": "  "}, headers=admin_headers).status_code == 400


def test_create_sheet_requires_admin(client):
    assert client.post(URL, json={"name": "x"}).status_code in (401, 403)
