from fastapi.testclient import TestClient

from app import app
from conftest import ADMIN, GUEST, STAFF
from models import RestaurantSettingDB
from services.restaurant_config import DEFAULT_SETTINGS, RestaurantConfig, SettingsProvider, seed_default_settings

client = TestClient(app)

# =========================================================
# Seeding
# =========================================================
def test_default_settings_are_seeded(db):
    keys = {s.key for s in db.query(RestaurantSettingDB).all()}
    assert keys == set(DEFAULT_SETTINGS)

def test_seeding_keeps_existing_values(db):
    setting = db.query(RestaurantSettingDB).filter(RestaurantSettingDB.key == "OPENING_TIME").first()
    setting.value = "12:00"
    db.commit()

    seed_default_settings(db)

    assert SettingsProvider(db).get("OPENING_TIME") == "12:00"
    assert db.query(RestaurantSettingDB).count() == len(DEFAULT_SETTINGS)

def test_config_from_seeded_settings(db):
    config = RestaurantConfig.from_provider(SettingsProvider(db))
    assert config.slot_duration == 120
    assert config.max_reservations_per_user == 3
    assert config.max_reservations_per_day == 50
    assert config.booking_advance_days == 30

# =========================================================
# TEST: GET /config
# =========================================================
def test_get_settings():
    response = client.get("/config", headers=STAFF)
    assert response.status_code == 200
    assert len(response.json()) == len(DEFAULT_SETTINGS)

def test_get_setting():
    response = client.get("/config/CLOSING_TIME", headers=STAFF)
    assert response.status_code == 200

    data = response.json()
    assert data["value"] == "22:00"
    assert data["description"] == "Restaurant closing time"

def test_get_setting_not_found():
    response = client.get("/config/UNKNOWN", headers=STAFF)
    assert response.status_code == 404

def test_get_settings_requires_staff():
    assert client.get("/config", headers=GUEST).status_code == 403

# =========================================================
# TEST: PUT /config/{key}
# =========================================================
def test_update_setting():
    response = client.put("/config/RESERVATION_TIME_SLOT_DURATION", json={"value": "90"}, headers=ADMIN)
    assert response.status_code == 200

    data = response.json()
    assert data["success"] is True
    assert data["updated_config"]["value"] == "90"

def test_update_setting_changes_availability(booking_day):
    client.put("/config/RESERVATION_TIME_SLOT_DURATION", json={"value": "60"}, headers=ADMIN)

    response = client.get("/reservations/availability", params={"date": booking_day.isoformat()})
    slots = response.json()["time_slots"]
    assert slots[-1]["time"] == "21:00:00"
    assert len(slots) == 21

def test_update_setting_rejects_invalid_config():
    response = client.put("/config/RESERVATION_TIME_SLOT_DURATION", json={"value": "0"}, headers=ADMIN)
    assert response.status_code == 400
    assert response.json()["errors"][0]["code"] == "CONFIGURATION"

    response = client.put("/config/OPENING_TIME", json={"value": "23:00"}, headers=ADMIN)
    assert response.status_code == 400

    response = client.put("/config/MAX_RESERVATIONS_PER_USER", json={"value": "many"}, headers=ADMIN)
    assert response.status_code == 400

    assert client.get("/config/RESERVATION_TIME_SLOT_DURATION", headers=STAFF).json()["value"] == "120"

def test_update_setting_not_found():
    response = client.put("/config/UNKNOWN", json={"value": "1"}, headers=ADMIN)
    assert response.status_code == 404

def test_update_setting_requires_admin():
    response = client.put("/config/OPENING_TIME", json={"value": "12:00"}, headers=STAFF)
    assert response.status_code == 403
