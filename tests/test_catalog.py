from conftest import auth, png_upload


def test_universities_are_public_and_admin_managed(client, admin, university, tutee):
    response = client.get("/api/universities")
    assert response.status_code == 200
    assert [u["acronym"] for u in response.json()] == ["BISU"]

    response = client.post("/api/universities", json={"name": "Sneaky U"}, headers=auth(tutee["token"]))
    assert response.status_code == 403


def test_university_email_domain_is_normalized(client, admin):
    response = client.post(
        "/api/universities",
        json={"name": "University of Bohol", "email_domain": "  @UB.edu.ph "},
        headers=auth(admin["token"]),
    )
    assert response.status_code == 201
    assert response.json()["email_domain"] == "ub.edu.ph"

    response = client.post(
        "/api/universities",
        json={"name": "Broken Domain", "email_domain": "not a domain"},
        headers=auth(admin["token"]),
    )
    assert response.status_code == 422


def test_duplicate_university_name(client, admin, university):
    response = client.post(
        "/api/universities", json={"name": university["name"]}, headers=auth(admin["token"])
    )
    assert response.status_code == 400


def test_inactive_university_blocks_registration(client, admin, university, course):
    response = client.patch(
        f"/api/universities/{university['university_id']}",
        json={"status": "inactive"},
        headers=auth(admin["token"]),
    )
    assert response.status_code == 200
    assert response.json()["status"] == "inactive"

    response = client.post(
        "/api/auth/register-student",
        json={
            "name": "Late Comer",
            "email": "late@bisu.edu.ph",
            "password": "Secret123!",
            "university_id": university["university_id"],
            "course_id": course["course_id"],
            "year_level": 1,
        },
    )
    assert response.status_code == 400


def test_university_with_courses_cannot_be_deleted(client, admin, university, course):
    response = client.delete(f"/api/universities/{university['university_id']}", headers=auth(admin["token"]))
    assert response.status_code == 400

    client.delete(f"/api/courses/{course['course_id']}", headers=auth(admin["token"]))
    response = client.delete(f"/api/universities/{university['university_id']}", headers=auth(admin["token"]))
    assert response.status_code == 200
    assert client.get("/api/universities").json() == []


def test_university_logo_upload(client, admin, university):
    response = client.post(
        f"/api/universities/{university['university_id']}/logo",
        files=png_upload("logo.png"),
        headers=auth(admin["token"]),
    )
    assert response.status_code == 200
    assert response.json()["logo_url"] == f"university_logos/universityLogo_{university['university_id']}.png"


def test_courses_filtered_by_university(client, admin, university, course):
    other = client.post(
        "/api/universities", json={"name": "Holy Name University", "acronym": "HNU"}, headers=auth(admin["token"])
    ).json()
    client.post(
        "/api/courses",
        json={"course_name": "BS Nursing", "university_id": other["university_id"]},
        headers=auth(admin["token"]),
    )

    response = client.get("/api/courses", params={"university_id": university["university_id"]})
    assert [c["course_name"] for c in response.json()] == ["BS Computer Science"]
    assert response.json()[0]["university_acronym"] == "BISU"

    assert len(client.get("/api/courses").json()) == 2


def test_course_validation(client, admin, university, course):
    response = client.post(
        "/api/courses",
        json={"course_name": "BS Computer Science", "university_id": university["university_id"]},
        headers=auth(admin["token"]),
    )
    assert response.status_code == 400

    response = client.post(
        "/api/courses", json={"course_name": "BS Magic", "university_id": 999}, headers=auth(admin["token"])
    )
    assert response.status_code == 404

    response = client.patch(
        f"/api/courses/{course['course_id']}", json={"course_name": "BS Computer Engineering"}, headers=auth(admin["token"])
    )
    assert response.status_code == 200
    assert response.json()["course_name"] == "BS Computer Engineering"


def test_course_in_use_cannot_be_deleted(client, admin, course, tutee):
    response = client.delete(f"/api/courses/{course['course_id']}", headers=auth(admin["token"]))
    assert response.status_code == 400


def test_course_subjects_crud(client, admin, course):
    base = f"/api/courses/{course['course_id']}/subjects"
    headers = auth(admin["token"])

    response = client.post(base, json={"subject_name": "Data Structures", "semester": "1st"}, headers=headers)
    assert response.status_code == 201
    subject_id = response.json()["subject_id"]

    response = client.patch(f"{base}/{subject_id}", json={"semester": "2nd"}, headers=headers)
    assert response.json()["semester"] == "2nd"

    assert [s["subject_name"] for s in client.get(base).json()] == ["Data Structures"]
    assert [s["subject_name"] for s in client.get("/api/subjects").json()] == ["Data Structures"]

    response = client.patch(f"/api/courses/{course['course_id']}/subjects/9999", json={"semester": "2nd"}, headers=headers)
    assert response.status_code == 404

    response = client.delete(f"{base}/{subject_id}", headers=headers)
    assert response.status_code == 200
    assert client.get(base).json() == []
