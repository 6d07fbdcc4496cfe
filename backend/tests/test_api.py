from datetime import date

from fastapi.testclient import TestClient

from study_diary.schemas import StudyLogCreate

BASE = "/api/v1/logs"


def _body(**overrides):
    data = {
        "title": "JPA lazy loading",
        "content": "Proxies and the N+1 problem",
        "category": "jpa",
        "understanding": "normal",
        "studyTime": 45,
        "studyDate": "2025-01-10",
    }
    data.update(overrides)
    return data


def _seed(client, n, **overrides):
    service = client.app.state.service
    ids = []
    for i in range(1, n + 1):
        fields = dict(title=f"Study log {i}", content=f"Notes {i}", category="java", understanding="good",
                      study_time=20 + i, study_date=date(2024, 1, (i - 1) % 28 + 1))
        fields.update(overrides)
        ids.append(service.create_study_log(StudyLogCreate(**fields)).id)
    return ids


def test_health_echoes_request_id(client):
    r = client.get("/health", headers={"X-Request-ID": "req-123"})
    assert r.status_code == 200
    assert r.json() == {"status": "ok"}
    assert r.headers["X-Request-ID"] == "req-123"
    assert client.get("/health").headers["X-Request-ID"]


def test_create_returns_enveloped_camel_case_record(client):
    r = client.post(BASE, json=_body())
    assert r.status_code == 200
    body = r.json()
    assert body["success"] is True
    assert body["error"] is None

    data = body["data"]
    assert list(data) == [
        "id", "title", "content", "category", "categoryIcon", "understanding", "understandingEmoji",
        "studyTime", "studyDate", "createdAt", "updatedAt", "deleted", "deletedAt",
    ]
    assert data["id"] == 1
    assert data["category"] == "JPA"
    assert data["understanding"] == "NORMAL"
    assert data["studyDate"] == "2025-01-10"
    assert data["deleted"] is False

    fetched = client.get(f"{BASE}/1").json()["data"]
    assert fetched == data


def test_create_without_study_date_uses_today(client):
    body = _body()
    del body["studyDate"]
    assert client.post(BASE, json=body).json()["data"]["studyDate"] == "2025-01-15"


def test_create_rejects_bad_input(client):
    r = client.post(BASE, json=_body(category="python"))
    assert r.status_code == 400
    assert r.json()["success"] is False
    assert r.json()["error"]["code"] == "INVALID_ENUM"

    r = client.post(BASE, json=_body(title=""))
    assert r.status_code == 400
    assert r.json()["error"]["code"] == "INVALID_INPUT"

    r = client.post(BASE, json=_body(studyTime=0))
    assert r.json()["error"]["code"] == "INVALID_INPUT"
    assert client.get(f"{BASE}/count").json()["data"] == {"count": 0}


def test_missing_record_is_404(client):
    for method, path in [("get", "/9"), ("put", "/9"), ("delete", "/9"), ("post", "/9/soft-delete"), ("post", "/9/restore")]:
        kwargs = {"json": {"title": "x"}} if method == "put" else {}
        r = getattr(client, method)(BASE + path, **kwargs)
        assert r.status_code == 404, path
        assert r.json()["error"]["code"] == "NOT_FOUND"


def test_put_is_a_partial_update(client):
    created = client.post(BASE, json=_body()).json()["data"]
    r = client.put(f"{BASE}/{created['id']}", json={"understanding": "excellent"})
    assert r.status_code == 200
    updated = r.json()["data"]
    assert updated["understanding"] == "EXCELLENT"
    assert updated["title"] == created["title"]
    assert updated["studyTime"] == created["studyTime"]
    assert updated["createdAt"] == created["createdAt"]
    assert updated["updatedAt"] > created["updatedAt"]


def test_put_errors(client):
    log_id = client.post(BASE, json=_body()).json()["data"]["id"]

    r = client.put(f"{BASE}/{log_id}", json={})
    assert r.status_code == 400
    assert r.json()["error"]["code"] == "NO_UPDATES"

    r = client.put(f"{BASE}/{log_id}", json={"studyDate": "2025-02-01"})
    assert r.json()["error"]["code"] == "INVALID_INPUT"

    r = client.put(f"{BASE}/{log_id}", json={"title": None})
    assert r.json()["error"]["code"] == "INVALID_INPUT"


def test_page_endpoint(client):
    _seed(client, 25)
    r = client.get(f"{BASE}/page", params={"page": 2, "size": 10})
    assert r.status_code == 200
    page = r.json()["data"]
    assert len(page["content"]) == 5
    assert page["totalElements"] == 25
    assert page["totalPages"] == 3
    assert page["last"] is True
    assert page["hasPrevious"] is True
    assert page["content"][0]["studyTime"] == 25

    r = client.get(f"{BASE}/page", params={"page": 5, "size": 10})
    assert r.status_code == 400
    assert r.json()["error"]["code"] == "INVALID_PAGE"


def test_page_parameters_are_normalised(client):
    _seed(client, 3)
    page = client.get(f"{BASE}/page", params={"size": 0, "sortBy": "unknown", "sortDirection": "asc"}).json()["data"]
    assert page["pageSize"] == 10
    assert [log["title"] for log in page["content"]] == ["Study log 1", "Study log 2", "Study log 3"]

    page = client.get(f"{BASE}/page", params={"sortBy": "studyTime", "sortDirection": "DESC"}).json()["data"]
    assert [log["studyTime"] for log in page["content"]] == [23, 22, 21]


def test_empty_page_is_ok(client):
    r = client.get(f"{BASE}/page")
    assert r.status_code == 200
    assert r.json()["data"]["totalPages"] == 0
    assert r.json()["data"]["content"] == []


def test_search_endpoint(client):
    _seed(client, 5)
    _seed(client, 2, title="Graph search", category="algorithm", study_date=date(2024, 2, 1))

    r = client.get(f"{BASE}/search", params={"titleKeyword": "LOG", "startDate": "2024-01-02", "endDate": "2024-01-04"})
    data = r.json()["data"]
    assert data["totalElements"] == 3
    assert sorted(log["title"] for log in data["content"]) == ["Study log 2", "Study log 3", "Study log 4"]

    r = client.get(f"{BASE}/search", params={"category": "Algorithm"})
    assert r.json()["data"]["totalElements"] == 2

    r = client.get(f"{BASE}/search", params={"category": "", "titleKeyword": ""})
    assert r.json()["data"]["totalElements"] == 7

    r = client.get(f"{BASE}/search", params={"category": "cooking"})
    assert r.status_code == 400
    assert r.json()["error"]["code"] == "INVALID_ENUM"


def test_category_and_date_listings(client):
    _seed(client, 2)
    _seed(client, 3, category="network", study_date=date(2024, 3, 1))

    r = client.get(f"{BASE}/category/network")
    assert r.status_code == 200
    assert len(r.json()["data"]) == 3
    assert all(log["category"] == "NETWORK" for log in r.json()["data"])

    page = client.get(f"{BASE}/category/NETWORK/page", params={"size": 2}).json()["data"]
    assert (page["totalElements"], page["totalPages"], len(page["content"])) == (3, 2, 2)

    assert client.get(f"{BASE}/category/poetry").status_code == 400
    assert len(client.get(f"{BASE}/date/2024-03-01").json()["data"]) == 3
    assert client.get(f"{BASE}/date/2024-03-02").json()["data"] == []


def test_soft_delete_restore_and_listings(client):
    a, b = _seed(client, 2)

    r = client.post(f"{BASE}/{a}/soft-delete")
    assert r.json()["data"] == {"id": a, "deleted": True, "changed": True}
    assert client.post(f"{BASE}/{a}/soft-delete").json()["data"]["changed"] is False

    assert [log["id"] for log in client.get(BASE).json()["data"]] == [b]
    assert [log["id"] for log in client.get(f"{BASE}/active").json()["data"]] == [b]
    assert len(client.get(BASE, params={"includeDeleted": "true"}).json()["data"]) == 2
    assert client.get(f"{BASE}/{a}").json()["data"]["deleted"] is True
    assert client.get(f"{BASE}/count").json()["data"]["count"] == 2

    r = client.post(f"{BASE}/{a}/restore")
    assert r.json()["data"] == {"id": a, "deleted": False, "changed": True}
    assert client.get(f"{BASE}/{a}").json()["data"]["deletedAt"] is None


def test_delete_one_and_all(client):
    a, _, _ = _seed(client, 3)

    r = client.delete(f"{BASE}/{a}")
    assert r.status_code == 200
    assert r.json()["data"] == {"id": a, "message": "study log deleted"}
    assert client.get(f"{BASE}/{a}").status_code == 404

    r = client.delete(BASE)
    assert r.json()["data"] == {"message": "all study logs deleted", "deletedCount": 2}
    assert client.get(f"{BASE}/count").json()["data"]["count"] == 0


def test_unexpected_error_is_500_envelope(store, clock, monkeypatch):
    from study_diary import main

    app = main.create_app(store=store, clock=clock)

    def boom(*args, **kwargs):
        raise RuntimeError("store exploded")

    monkeypatch.setattr(app.state.service, "count_study_logs", boom)
    client = TestClient(app, raise_server_exceptions=False)
    r = client.get(f"{BASE}/count", headers={"X-Request-ID": "req-500"})
    assert r.status_code == 500
    assert r.json() == {"success": False, "data": None, "error": {"code": "INTERNAL_SERVER_ERROR", "message": "internal server error"}}
    assert r.headers["X-Request-ID"] == "req-500"

    assert client.get(f"{BASE}/count").headers["X-Request-ID"]
