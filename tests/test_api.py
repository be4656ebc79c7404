def register(client, role, email, name="Test User"):
    response = client.post("/auth/register", json={
        "name": name,
        "email": email,
        "password": "secret123",
        "role": role
    })
    assert response.status_code == 201, response.text
    body = response.json()
    return body["user"]["user_id"], {"Authorization": f"Bearer {body['token']}"}


def open_course(client, teacher_headers, total_days=2):
    response = client.post("/courses", json={"title": "Data Basics", "total_days": total_days},
                           headers=teacher_headers)
    assert response.status_code == 201, response.text
    course_id = response.json()["course_id"]

    response = client.put(f"/courses/{course_id}", json={"status": "active"}, headers=teacher_headers)
    assert response.status_code == 200, response.text
    return course_id


def approved_student(client, teacher_headers, course_id, email):
    student_id, student_headers = register(client, "student", email)
    response = client.post("/enrollments", json={"course_id": course_id}, headers=student_headers)
    assert response.status_code == 201, response.text

    enrollment_id = response.json()["enrollment_id"]
    response = client.put(f"/enrollments/{enrollment_id}/approve", headers=teacher_headers)
    assert response.status_code == 200, response.text
    return student_id, student_headers


# ==================== AUTH ====================

def test_register_and_login(client):
    register(client, "student", "amy@portal.test", name="Amy")

    response = client.post("/auth/login", json={"email": "AMY@portal.test", "password": "secret123"})
    assert response.status_code == 200
    assert response.json()["user"]["role"] == "student"
    assert "password_hash" not in response.json()["user"]

    response = client.post("/auth/login", json={"email": "amy@portal.test", "password": "wrong"})
    assert response.status_code == 401

    response = client.post("/auth/register", json={
        "name": "Amy Again", "email": "amy@portal.test", "password": "secret123"
    })
    assert response.status_code == 400


def test_admin_cannot_be_registered(client):
    response = client.post("/auth/register", json={
        "name": "Mallory", "email": "m@portal.test", "password": "secret123", "role": "admin"
    })
    assert response.status_code == 422


def test_admin_login_uses_configured_credential(client, admin_password):
    response = client.post("/admin/login", json={"email": "admin@portal.test", "password": "nope"})
    assert response.status_code == 401

    response = client.post("/admin/login", json={"email": "Admin@Portal.test", "password": admin_password})
    assert response.status_code == 200
    admin_headers = {"Authorization": f"Bearer {response.json()['token']}"}

    register(client, "teacher", "tom@portal.test")
    response = client.get("/admin/users", headers=admin_headers)
    assert response.status_code == 200
    assert response.json()["pending_teachers"] == 1


def test_roles_are_enforced(client):
    _, student_headers = register(client, "student", "sam@portal.test")

    assert client.get("/courses/my-courses").status_code == 401
    assert client.get("/courses", headers={"Authorization": "Bearer not-a-token"}).status_code == 401

    response = client.post("/courses", json={"title": "Nope", "total_days": 1}, headers=student_headers)
    assert response.status_code == 403
    assert client.get("/admin/users", headers=student_headers).status_code == 403


# ==================== COURSE FLOW ====================

def test_teacher_cannot_touch_another_teachers_course(client):
    _, owner_headers = register(client, "teacher", "owner@portal.test")
    _, other_headers = register(client, "teacher", "other@portal.test")
    course_id = open_course(client, owner_headers)

    response = client.put(f"/courses/{course_id}", json={"title": "Mine now"}, headers=other_headers)
    assert response.status_code == 403


def test_rating_flow_over_http(client):
    _, teacher_headers = register(client, "teacher", "t1@portal.test")
    course_id = open_course(client, teacher_headers)
    _, student_headers = approved_student(client, teacher_headers, course_id, "s1@portal.test")

    payload = {"course_id": course_id, "day_number": 1, "rating": 4}
    assert client.post("/ratings/day", json=payload, headers=student_headers).status_code == 400

    response = client.post(f"/attendance/course/{course_id}/day/1/complete", headers=teacher_headers)
    assert response.status_code == 200
    assert response.json()["recomputed"] == 1

    assert client.post("/ratings/day", json=payload, headers=student_headers).status_code == 201
    payload["rating"] = 5
    response = client.post("/ratings/day", json=payload, headers=student_headers)
    assert response.status_code == 200
    assert response.json()["rating"] == 5

    payload["rating"] = 9
    assert client.post("/ratings/day", json=payload, headers=student_headers).status_code == 422


def test_attendance_drives_progress_over_http(client):
    _, teacher_headers = register(client, "teacher", "t2@portal.test")
    course_id = open_course(client, teacher_headers, total_days=4)
    student_id, student_headers = approved_student(client, teacher_headers, course_id, "s2@portal.test")

    response = client.post("/attendance/mark", json={
        "course_id": course_id,
        "day_number": 1,
        "records": [{"student_id": student_id, "status": "present"}]
    }, headers=teacher_headers)
    assert response.status_code == 200
    assert len(response.json()["attendance_records"]) == 1

    response = client.get("/enrollments/my-enrollments", headers=student_headers)
    assert response.json()[0]["progress"] == 25
    assert response.json()[0]["days_completed"] == 1

    response = client.post("/attendance/mark", json={
        "course_id": course_id, "day_number": 5, "records": []
    }, headers=teacher_headers)
    assert response.status_code == 400


def test_certificate_endpoints(client):
    _, teacher_headers = register(client, "teacher", "t3@portal.test")
    course_id = open_course(client, teacher_headers, total_days=1)
    student_id, student_headers = approved_student(client, teacher_headers, course_id, "s3@portal.test")

    client.post("/attendance/mark", json={
        "course_id": course_id, "day_number": 1, "records": [{"student_id": student_id, "status": "present"}]
    }, headers=teacher_headers)
    client.post(f"/attendance/course/{course_id}/day/1/complete", headers=teacher_headers)

    response = client.get(f"/certificates/eligibility/{course_id}", headers=student_headers)
    assert response.status_code == 200
    assert response.json()["has_pending_reviews"] is True

    response = client.post(f"/certificates/generate/{course_id}", headers=student_headers)
    assert response.status_code == 400
    assert response.json()["detail"]["pending_reviews"][0]["day_number"] == 1

    client.post("/ratings/day", json={"course_id": course_id, "day_number": 1, "rating": 5},
                headers=student_headers)
    response = client.post(f"/certificates/survey/{course_id}", json={
        "overall_satisfaction": 5,
        "content_quality": 5,
        "teaching_effectiveness": 5,
        "course_material_quality": 5,
        "practical_application": 5,
        "difficulty_level": "easy",
        "what_you_learned": "How to clean and chart a small dataset.",
        "improvements": "A longer session on plotting libraries.",
        "recommend_to_others": True
    }, headers=student_headers)
    assert response.status_code == 201, response.text

    response = client.post(f"/certificates/generate/{course_id}", headers=student_headers)
    assert response.status_code == 200
    number = response.json()["certificate"]["certificate_number"]

    response = client.get(f"/certificates/verify/{number}")
    assert response.status_code == 200
    assert response.json()["valid"] is True

    response = client.get("/certificates/verify/SF-0000-MISSING-0000")
    assert response.status_code == 404
    assert response.json() == {"valid": False, "message": "Certificate not found"}


# ==================== FEEDBACK & DASHBOARDS ====================

def test_feedback_and_dashboards_over_http(client):
    _, teacher_headers = register(client, "teacher", "t4@portal.test")
    course_id = open_course(client, teacher_headers, total_days=2)
    student_id, student_headers = approved_student(client, teacher_headers, course_id, "s4@portal.test")

    response = client.post("/feedback", json={"course_id": course_id, "day_number": 1, "feedback": "  "},
                           headers=student_headers)
    assert response.status_code == 422

    response = client.post("/feedback", json={"course_id": course_id, "feedback": "Clear and well paced."},
                           headers=student_headers)
    assert response.status_code == 201
    assert response.json()["day_number"] is None

    response = client.get(f"/feedback/course/{course_id}", headers=teacher_headers)
    assert [f["feedback"] for f in response.json()] == ["Clear and well paced."]
    assert client.get(f"/feedback/course/{course_id}", headers=student_headers).status_code == 403

    response = client.get("/analytics/dashboard", headers=teacher_headers)
    assert response.status_code == 200
    assert response.json()["total_students"] == 1
    assert client.get("/analytics/dashboard", headers=student_headers).status_code == 403

    response = client.get("/analytics/student-dashboard", headers=student_headers)
    assert response.json()["total_enrolled"] == 1

    response = client.get("/certificates/teacher-analytics", headers=teacher_headers)
    assert response.status_code == 200
    assert response.json()["analytics"] is None


def test_admin_reports_and_audit_filters(client, admin_password):
    response = client.post("/admin/login", json={"email": "admin@portal.test", "password": admin_password})
    admin_headers = {"Authorization": f"Bearer {response.json()['token']}"}

    teacher_id, teacher_headers = register(client, "teacher", "t5@portal.test")
    course_id = open_course(client, teacher_headers)
    approved_student(client, teacher_headers, course_id, "s5@portal.test")

    response = client.get("/admin/courses", headers=admin_headers)
    assert response.status_code == 200
    assert response.json()[0]["enrolled_count"] == 1

    response = client.get(f"/admin/attendance-reports/{course_id}", headers=admin_headers)
    assert response.status_code == 200
    assert len(response.json()["days"]) == 2
    assert client.get("/admin/attendance-reports/CRS_MISSING", headers=admin_headers).status_code == 404

    response = client.get("/admin/audit-logs", params={"actor_user_id": teacher_id, "action": "approve_enrollment"},
                          headers=admin_headers)
    assert response.json()["count"] == 1
    assert response.json()["logs"][0]["target_type"] == "enrollment"
