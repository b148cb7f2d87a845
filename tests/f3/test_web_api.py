"""Tests for the course API endpoints (F3)."""


def _create_course(client, headers, **overrides):
    body = {"institution": "Uni", "title": "BSc", **overrides}
    response = client.post("/api/course", json=body, headers=headers)
    assert response.status_code == 201
    return response.json()


def _add_module(client, headers, year_id, name="Algorithms", credits=20):
    response = client.post(
        f"/api/years/{year_id}/modules",
        json={"name": name, "credits": credits},
        headers=headers,
    )
    assert response.status_code == 201
    return response.json()


def _add_assessment(client, headers, module_id, name="Exam", weight=100):
    response = client.post(
        f"/api/modules/{module_id}/assessments",
        json={"name": name, "weight": weight},
        headers=headers,
    )
    assert response.status_code == 201
    return response.json()


class TestHealthEndpoint:
    """Tests for GET /health."""

    def test_health_returns_ok(self, client):
        response = client.get("/health")
        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "ok"
        assert data["version"] == "0.1.0"
        assert "T" in data["timestamp"]


class TestCourseEndpoints:
    """Tests for /api/course."""

    def test_requires_user_header(self, client):
        response = client.get("/api/course")
        assert response.status_code == 422

    def test_blank_user_rejected(self, client):
        response = client.get("/api/course", headers={"X-User-Id": "  "})
        assert response.status_code == 401

    def test_no_course_returns_null(self, client, alice):
        response = client.get("/api/course", headers=alice)
        assert response.status_code == 200
        assert response.json() is None

    def test_create_three_year_course(self, client, alice):
        data = _create_course(client, alice)
        assert [y["weight"] for y in data["years"]] == [0, 40, 60]
        assert [y["label"] for y in data["years"]] == ["Year 1", "Year 2", "Year 3"]
        assert all(y["modules"] == [] for y in data["years"])

    def test_create_four_year_course(self, client, alice):
        data = _create_course(client, alice, year_count=4)
        assert [y["weight"] for y in data["years"]] == [0, 20, 30, 50]

    def test_create_round_trip(self, client, alice):
        created = _create_course(client, alice, target_grade=68)
        fetched = client.get("/api/course", headers=alice).json()
        assert fetched == created

    def test_second_course_conflicts(self, client, alice):
        _create_course(client, alice)
        response = client.post(
            "/api/course", json={"institution": "Uni", "title": "Again"}, headers=alice
        )
        assert response.status_code == 409

    def test_create_validates_body(self, client, alice):
        response = client.post(
            "/api/course",
            json={"institution": "Uni", "title": "BSc", "target_grade": 150},
            headers=alice,
        )
        assert response.status_code == 422

    def test_blank_title_rejected(self, client, alice):
        response = client.post(
            "/api/course", json={"institution": "Uni", "title": "   "}, headers=alice
        )
        assert response.status_code == 422

    def test_partial_update(self, client, alice):
        _create_course(client, alice, target_grade=70)
        response = client.put("/api/course", json={"title": "MSc"}, headers=alice)
        assert response.status_code == 200

        data = client.get("/api/course", headers=alice).json()
        assert data["title"] == "MSc"
        assert data["institution"] == "Uni"
        assert data["target_grade"] == 70

    def test_null_clears_target(self, client, alice):
        _create_course(client, alice, target_grade=70)
        client.put("/api/course", json={"target_grade": None}, headers=alice)
        assert client.get("/api/course", headers=alice).json()["target_grade"] is None

    def test_null_title_rejected(self, client, alice):
        _create_course(client, alice)
        response = client.put("/api/course", json={"title": None}, headers=alice)
        assert response.status_code == 422

    def test_update_without_course(self, client, alice):
        response = client.put("/api/course", json={"title": "X"}, headers=alice)
        assert response.status_code == 404

    def test_delete_is_idempotent(self, client, alice):
        _create_course(client, alice)
        assert client.delete("/api/course", headers=alice).status_code == 204
        assert client.delete("/api/course", headers=alice).status_code == 204
        assert client.get("/api/course", headers=alice).json() is None


class TestTreeEndpoints:
    """Tests for year, module and assessment routes."""

    def test_add_year(self, client, alice):
        course = _create_course(client, alice)
        response = client.post(
            f"/api/courses/{course['id']}/years", json={"weight": 5}, headers=alice
        )
        assert response.status_code == 201
        data = response.json()
        assert data["year_number"] == 4
        assert data["label"] == "Year 4"

    def test_update_year(self, client, alice):
        course = _create_course(client, alice)
        year_id = course["years"][2]["id"]
        response = client.put(
            f"/api/years/{year_id}", json={"weight": 70, "target_grade": 60}, headers=alice
        )
        assert response.status_code == 200
        year = client.get("/api/course", headers=alice).json()["years"][2]
        assert year["weight"] == 70
        assert year["target_grade"] == 60

    def test_assessment_grade_and_completion(self, client, alice):
        course = _create_course(client, alice)
        module = _add_module(client, alice, course["years"][0]["id"])
        assessment = _add_assessment(client, alice, module["id"])
        assert assessment["completed"] is False
        assert assessment["grade"] is None

        response = client.put(
            f"/api/assessments/{assessment['id']}",
            json={"grade": 64, "completed": True},
            headers=alice,
        )
        assert response.status_code == 200

        stored = client.get("/api/course", headers=alice).json()["years"][0]["modules"][0]
        assert stored["assessments"][0]["grade"] == 64
        assert stored["assessments"][0]["completed"] is True

    def test_grade_out_of_range(self, client, alice):
        course = _create_course(client, alice)
        module = _add_module(client, alice, course["years"][0]["id"])
        assessment = _add_assessment(client, alice, module["id"])
        response = client.put(
            f"/api/assessments/{assessment['id']}", json={"grade": -1}, headers=alice
        )
        assert response.status_code == 422

    def test_module_credits_validated(self, client, alice):
        course = _create_course(client, alice)
        response = client.post(
            f"/api/years/{course['years'][0]['id']}/modules",
            json={"name": "Maths", "credits": 0},
            headers=alice,
        )
        assert response.status_code == 422

    def test_null_required_fields_rejected(self, client, alice):
        course = _create_course(client, alice)
        year_id = course["years"][0]["id"]
        module = _add_module(client, alice, year_id)
        assessment = _add_assessment(client, alice, module["id"])

        for url, body in [
            (f"/api/years/{year_id}", {"weight": None}),
            (f"/api/years/{year_id}", {"label": None}),
            (f"/api/modules/{module['id']}", {"credits": None}),
            (f"/api/assessments/{assessment['id']}", {"completed": None}),
        ]:
            assert client.put(url, json=body, headers=alice).status_code == 422

        response = client.put(
            f"/api/modules/{module['id']}", json={"target_grade": None}, headers=alice
        )
        assert response.status_code == 200

    def test_limits_enforced(self, client, alice):
        body = {"institution": "Uni", "title": "BSc", "year_count": 11}
        response = client.post("/api/course", json=body, headers=alice)
        assert response.status_code == 422

        course = _create_course(client, alice)
        response = client.post(
            f"/api/courses/{course['id']}/years", json={"label": "x" * 101}, headers=alice
        )
        assert response.status_code == 422

    def test_delete_year_cascades(self, client, alice):
        course = _create_course(client, alice)
        year_id = course["years"][1]["id"]
        module = _add_module(client, alice, year_id)
        assessment = _add_assessment(client, alice, module["id"])

        assert client.delete(f"/api/years/{year_id}", headers=alice).status_code == 204

        data = client.get("/api/course", headers=alice).json()
        assert [y["id"] for y in data["years"]] == [course["years"][0]["id"], course["years"][2]["id"]]
        response = client.put(
            f"/api/assessments/{assessment['id']}", json={"grade": 50}, headers=alice
        )
        assert response.status_code == 404

    def test_delete_module_and_assessment(self, client, alice):
        course = _create_course(client, alice)
        module = _add_module(client, alice, course["years"][0]["id"])
        assessment = _add_assessment(client, alice, module["id"])

        assert client.delete(f"/api/assessments/{assessment['id']}", headers=alice).status_code == 204
        assert client.delete(f"/api/modules/{module['id']}", headers=alice).status_code == 204
        assert client.delete(f"/api/modules/{module['id']}", headers=alice).status_code == 404

    def test_unknown_ids(self, client, alice):
        _create_course(client, alice)
        assert client.put("/api/years/nope", json={}, headers=alice).status_code == 404
        assert client.delete("/api/modules/nope", headers=alice).status_code == 404
        assert client.post(
            "/api/modules/nope/assessments", json={"name": "X", "weight": 10}, headers=alice
        ).status_code == 404


class TestOwnershipScoping:
    """Callers only see and change their own tree."""

    def test_other_user_cannot_touch_year(self, client, alice, bob):
        course = _create_course(client, alice)
        year_id = course["years"][0]["id"]

        assert client.delete(f"/api/years/{year_id}", headers=bob).status_code == 404
        assert client.post(
            f"/api/courses/{course['id']}/years", json={}, headers=bob
        ).status_code == 404
        assert len(client.get("/api/course", headers=alice).json()["years"]) == 3

    def test_each_user_has_own_course(self, client, alice, bob):
        _create_course(client, alice, title="Alice BSc")
        _create_course(client, bob, title="Bob BSc")
        assert client.get("/api/course", headers=alice).json()["title"] == "Alice BSc"
        assert client.get("/api/course", headers=bob).json()["title"] == "Bob BSc"
