import pytest

from asset_listr.exceptions import GatewayError, NotAuthenticatedError, RecordNotFoundError
from asset_listr.gateway import SQLiteGateway
from asset_listr.models import PROPERTIES

from conftest import AGENT_EMAIL, AGENT_PASSWORD


def _record(agent_id, **overrides):
    data = {
        "property_id": "AL-001",
        "title": "Sea View Apartment",
        "type": "Apartment",
        "location": "Marina Bay",
        "area": 1200.0,
        "price": 450000.0,
        "bedrooms": 2,
        "amenities": ["Pool", "Gym"],
        "owner_contact": "+1 555 0100",
        "description": None,
        "agent_id": agent_id,
    }
    data.update(overrides)
    return data


def test_create_agent_and_sign_in(tmp_path):
    gw = SQLiteGateway(str(tmp_path / "db.sqlite"))
    profile = gw.create_agent("  Lee@Example.com ", "pw", full_name="Lee", phone="555")
    assert profile.email == "lee@example.com"
    assert gw.get_profile(profile.id).full_name == "Lee"

    assert gw.get_session() is None
    session = gw.sign_in("LEE@example.com", "pw")
    assert session.user.id == profile.id
    assert session.access_token
    assert gw.get_session().user.email == "lee@example.com"
    gw.close()


def test_duplicate_agent_is_conflict(tmp_path):
    gw = SQLiteGateway(str(tmp_path / "db.sqlite"))
    gw.create_agent("a@example.com", "pw")
    with pytest.raises(GatewayError) as exc:
        gw.create_agent("A@example.com", "other")
    assert exc.value.status_code == 409
    gw.close()


@pytest.mark.parametrize(
    "email,password",
    [(AGENT_EMAIL, "wrong"), ("nobody@example.com", AGENT_PASSWORD), ("", "")],
)
def test_bad_credentials_are_rejected(sqlite_db, email, password):
    gw = SQLiteGateway(str(sqlite_db))
    with pytest.raises(NotAuthenticatedError) as exc:
        gw.sign_in(email, password)
    assert str(exc.value) == "Invalid login credentials"
    assert gw.get_session() is None
    gw.close()


def test_session_token_is_reusable_until_sign_out(signed_in, sqlite_db):
    token = signed_in.access_token
    other = SQLiteGateway(str(sqlite_db), access_token=token)
    assert other.get_current_user().email == AGENT_EMAIL

    signed_in.sign_out()
    assert signed_in.get_session() is None
    assert other.get_session() is None
    other.close()


def test_data_operations_require_a_session(sqlite_db):
    gw = SQLiteGateway(str(sqlite_db))
    with pytest.raises(NotAuthenticatedError):
        gw.list(PROPERTIES)
    with pytest.raises(NotAuthenticatedError):
        gw.insert(PROPERTIES, _record("anyone"))
    gw.close()


def test_insert_assigns_id_and_timestamps(signed_in):
    user = signed_in.get_current_user()
    row = signed_in.insert(PROPERTIES, _record(user.id, id="client-id", created_at="1999"))

    assert row["id"] != "client-id"
    assert row["agent_id"] == user.id
    assert row["created_at"] and row["created_at"] == row["updated_at"]
    assert row["amenities"] == ["Pool", "Gym"]
    assert row["description"] is None


def test_insert_for_another_agent_is_forbidden(signed_in):
    with pytest.raises(GatewayError) as exc:
        signed_in.insert(PROPERTIES, _record("someone-else"))
    assert exc.value.status_code == 403


def test_property_id_is_unique(signed_in):
    user = signed_in.get_current_user()
    signed_in.insert(PROPERTIES, _record(user.id))
    with pytest.raises(GatewayError) as exc:
        signed_in.insert(PROPERTIES, _record(user.id, title="Copy"))
    assert exc.value.status_code == 409
    assert len(signed_in.list(PROPERTIES)) == 1


def test_list_is_newest_first(signed_in):
    user = signed_in.get_current_user()
    for n in range(3):
        signed_in.insert(PROPERTIES, _record(user.id, property_id=f"AL-{n}"))
    rows = signed_in.list(PROPERTIES)
    assert [r["property_id"] for r in rows] == ["AL-2", "AL-1", "AL-0"]

    with pytest.raises(GatewayError) as exc:
        signed_in.list(PROPERTIES, order_by="owner_contact; DROP TABLE properties")
    assert exc.value.status_code == 400


def test_unknown_collection(signed_in):
    with pytest.raises(GatewayError) as exc:
        signed_in.list("profiles")
    assert exc.value.status_code == 404


def test_update_keeps_identity_fields(signed_in):
    user = signed_in.get_current_user()
    row = signed_in.insert(PROPERTIES, _record(user.id))

    updated = signed_in.update(
        PROPERTIES,
        row["id"],
        {"title": "Renamed", "amenities": None, "agent_id": "hijack", "created_at": "1999"},
    )
    assert updated["title"] == "Renamed"
    assert updated["amenities"] is None
    assert updated["agent_id"] == user.id
    assert updated["created_at"] == row["created_at"]
    assert updated["updated_at"] >= row["updated_at"]


def test_missing_record_on_update_and_delete(signed_in):
    with pytest.raises(RecordNotFoundError) as exc:
        signed_in.update(PROPERTIES, "nope", {"title": "x"})
    assert exc.value.status_code == 404
    with pytest.raises(RecordNotFoundError):
        signed_in.delete(PROPERTIES, "nope")


def test_other_agents_rows_are_visible_but_not_writable(signed_in, sqlite_db):
    user = signed_in.get_current_user()
    row = signed_in.insert(PROPERTIES, _record(user.id))

    other = SQLiteGateway(str(sqlite_db))
    other.create_agent("second@example.com", "pw")
    other.sign_in("second@example.com", "pw")
    try:
        assert [r["id"] for r in other.list(PROPERTIES)] == [row["id"]]
        with pytest.raises(RecordNotFoundError):
            other.update(PROPERTIES, row["id"], {"title": "Mine now"})
        with pytest.raises(RecordNotFoundError):
            other.delete(PROPERTIES, row["id"])
    finally:
        other.close()

    signed_in.delete(PROPERTIES, row["id"])
    assert signed_in.list(PROPERTIES) == []
