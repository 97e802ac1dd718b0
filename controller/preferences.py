from model.documents import UserPreference
from schema.documents import PreferencesIn, PreferencesOut
from core.db import CreateDBSession


class PreferenceOp:

    @staticmethod
    def get_preferences(user_id: str) -> PreferencesOut:
        """Stored preferences, or the defaults when the user never saved any"""
        with CreateDBSession() as db:
            preference = db.query(UserPreference).filter(
                UserPreference.user_id == user_id
            ).first()
            if not preference:
                return PreferencesOut(user_id=user_id, **PreferencesIn().model_dump())
            return PreferencesOut.model_validate(preference)

    @staticmethod
    def save_preferences(user_id: str, data: PreferencesIn) -> PreferencesOut:
        with CreateDBSession() as db:
            preference = db.query(UserPreference).filter(
                UserPreference.user_id == user_id
            ).first()
            if not preference:
                preference = UserPreference(user_id=user_id)
                db.add(preference)

            preference.default_summary_type = data.default_summary_type
            preference.auto_categorize = data.auto_categorize
            preference.preferred_tone = data.preferred_tone
            db.commit()
            db.refresh(preference)
            return PreferencesOut.model_validate(preference)
