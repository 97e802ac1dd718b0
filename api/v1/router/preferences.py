from fastapi import APIRouter, Depends
from controller.preferences import PreferenceOp
from schema.documents import PreferencesIn, PreferencesOut
from service.auth import current_user_id

router = APIRouter(tags=["Preferences"])


@router.get("/preferences", response_model=PreferencesOut)
def get_preferences(user_id: str = Depends(current_user_id)):
    return PreferenceOp.get_preferences(user_id)


@router.put("/preferences", response_model=PreferencesOut)
def save_preferences(data: PreferencesIn, user_id: str = Depends(current_user_id)):
    return PreferenceOp.save_preferences(user_id, data)
