from guestdesk.db.models import Guest, Organization


def test_public_profile_excludes_password(client, org):
    response = client.get(f"/api/organizations/{org['id']}")

    assert response.status_code == 200
    data = response.json()["data"]
    assert data["id"] == org["id"]
    assert data["locations"] == ["Reception", "Lab"]
    assert data["staffMembers"] == ["Dr. Smith", "Reception Staff"]
    assert not any("password" in key.lower() for key in data)


def test_public_profile_unknown_id(client):
    response = client.get("/api/organizations/does-not-exist")

    assert response.status_code == 404
    assert response.json()["message"] == "Organization not found or inactive"


def test_public_profile_inactive(client, db, org):
    db.query(Organization).filter(Organization.id == org["id"]).update({Organization.is_active: False})
    db.commit()

    response = client.get(f"/api/organizations/{org['id']}")

    assert response.status_code == 404


def test_update_profile_partial(client, db, org):
    response = client.put(
        "/api/organizations/profile",
        headers=org["headers"],
        json={"name": "Acme Labs", "locations": ["Lobby", " ", "Floor 2 "], "minGuestVisitMinutes": 20},
    )

    assert response.status_code == 200
    assert response.json()["message"] == "Organization updated successfully"

    stored = db.query(Organization).filter(Organization.id == org["id"]).one()
    assert stored.name == "Acme Labs"
    assert stored.locations == ["Lobby", "Floor 2"]
    assert stored.min_guest_visit_minutes == 20
    # Untouched fields keep their values.
    assert stored.contact_person == "Ada Admin"
    assert stored.staff_members == ["Dr. Smith", "Reception Staff"]


def test_update_profile_rejects_out_of_range_minimum(client, org):
    response = client.put("/api/organizations/profile", headers=org["headers"], json={"minGuestVisitMinutes": 2})
    assert response.status_code == 400


def test_update_profile_requires_token(client):
    response = client.put("/api/organizations/profile", json={"name": "Nope"})
    assert response.status_code == 401


def test_minimum_visit_change_does_not_touch_existing_visits(client, db, org, register_guest):
    code = register_guest(org["id"])

    client.put("/api/organizations/profile", headers=org["headers"], json={"minGuestVisitMinutes": 60})
    later_code = register_guest(org["id"])

    existing = db.query(Guest).filter(Guest.guest_code == code).one()
    later = db.query(Guest).filter(Guest.guest_code == later_code).one()
    assert existing.min_visit_duration == 15
    assert later.min_visit_duration == 60
