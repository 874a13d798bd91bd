"""
settings_service.py: Per-user preferences.

Each user has exactly one settings row, created on first access.
"""

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from notestack.config import DEFAULT_SETTINGS
from notestack.errors import ValidationError
from notestack.models.user_setting import UserSetting

SETTING_KEYS = tuple(DEFAULT_SETTINGS)


class SettingsService:
    @staticmethod
    def _get_or_create(db: Session, user_id: int) -> UserSetting:
        row = db.query(UserSetting).filter_by(user_id=user_id).first()
        if row is not None:
            return row
        try:
            row = UserSetting(user_id=user_id, **DEFAULT_SETTINGS)
            db.add(row)
            db.commit()
            db.refresh(row)
            return row
        except IntegrityError:
            # Another request created it first
            db.rollback()
            return db.query(UserSetting).filter_by(user_id=user_id).one()

    @staticmethod
    def _as_dict(row: UserSetting) -> dict:
        return {key: getattr(row, key) for key in SETTING_KEYS}

    @staticmethod
    def get(db: Session, user_id: int) -> dict:
        return SettingsService._as_dict(SettingsService._get_or_create(db, user_id))

    @staticmethod
    def update(db: Session, user_id: int, settings: dict) -> dict:
        """Only known keys are applied; unknown keys are ignored."""
        if not isinstance(settings, dict):
            raise ValidationError("Settings object is required")
        row = SettingsService._get_or_create(db, user_id)
        updates = {k: v for k, v in settings.items() if k in SETTING_KEYS}
        if updates:
            try:
                for key, value in updates.items():
                    setattr(row, key, value)
                db.commit()
                db.refresh(row)
            except Exception:
                db.rollback()
                raise
        return SettingsService._as_dict(row)
