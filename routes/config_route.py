from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from database import get_db
from dependencies import Caller, require_admin, require_operator
from models import RestaurantSetting, RestaurantSettingDB, RestaurantSettingUpdate
from services.errors import NotFoundError
from services.restaurant_config import update_setting


config_router = APIRouter(
    tags=["Config"]
)

@config_router.get("/config", tags=["Config"])
def get_settings(db: Session = Depends(get_db), caller: Caller = Depends(require_operator)):
    settings = db.query(RestaurantSettingDB).order_by(RestaurantSettingDB.key.asc()).all()
    return [RestaurantSetting.model_validate(s) for s in settings]

@config_router.get("/config/{key}", tags=["Config"])
def get_setting(key: str, db: Session = Depends(get_db), caller: Caller = Depends(require_operator)):
    setting = db.query(RestaurantSettingDB).filter(RestaurantSettingDB.key == key).first()
    if not setting:
        raise NotFoundError(f"Setting {key} not found")
    return RestaurantSetting.model_validate(setting)

@config_router.put("/config/{key}", tags=["Config"])
def put_setting(
    key: str,
    config: RestaurantSettingUpdate,
    db: Session = Depends(get_db),
    caller: Caller = Depends(require_admin),
):
    """
    Changes one restaurant setting.

    The value is rejected when the resulting configuration would be invalid,
    e.g. an opening time after the closing time.
    """
    setting = update_setting(db, key, config.value)
    return {"success": True, "updated_config": RestaurantSetting.model_validate(setting)}
