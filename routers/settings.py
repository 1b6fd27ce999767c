from typing import List, Optional

from fastapi import APIRouter, Depends
from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel
from sqlalchemy.orm import Session

from core.auth import AuthUser, get_current_user
from core.config import logger
from core.database import get_db
from core.errors import ValidationFailed
from core.permissions import require, SETTINGS_VIEW, SETTINGS_MANAGE
from models.app_setting import AppSetting
from utils.response import success_response

router = APIRouter(prefix="/api/settings", tags=["settings"])

CONSENT_FORM_KEY = "consent_form"

# Served until an admin saves their own wording
DEFAULT_CONSENT_FORM = {
    "paragraphs": [
        "I confirm that I am the parent/legal guardian of the child(ren) being photographed and have the "
        "authority to consent on their behalf. Portrait Place Studios operates under UK GDPR regulations to "
        "ensure the safety, dignity, and privacy of all individuals. All photographs remain the property of "
        "Portrait Place Studios until full payment is received. Photographs will only be released to the "
        "mother or father of the child(ren). No release will be made to any other individual (relatives, "
        "friends, associates) even with written authorization, identification, or video call verification, "
        "to protect against data misuse.",
        "I grant consent for Portrait Place Studios to use photographs (including myself and my child(ren)) "
        "for marketing, advertising, social media, website galleries, printed materials, and other "
        "promotional activities without further notice. Portrait Place Studios is not responsible for any "
        "injury, accident, or loss that may occur during the photoshoot. I remain responsible for supervising "
        "my child(ren) at all times. Portrait Place Studios accepts no liability for lost or damaged personal "
        "belongings.",
        "If I do not collect my photographs on the advised date, they will be shredded or permanently "
        "destroyed without further notice. As a mobile studio, uncollected photographs cannot be transported "
        "back to a base or future locations. I accept full responsibility for collection and waive all claims "
        "against Portrait Place Studios for destruction due to non-collection.",
        "I have read, understood, and agree to all terms of the consent, privacy, collection, and release "
        "policy. I accept full responsibility for ensuring only myself or the other parent collects the "
        "photographs. I acknowledge that failure to comply may result in refusal to release photographs.",
    ],
    "permissionText": "I confirmed and allow that the studio may use my photos if required.",
}


class ConsentFormPayload(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    paragraphs: Optional[List[str]] = None
    permission_text: Optional[str] = None


@router.get("/consent-form")
def get_consent_form(user: AuthUser = Depends(get_current_user), db: Session = Depends(get_db)):
    require(user, SETTINGS_VIEW)
    setting = db.query(AppSetting).filter(AppSetting.key == CONSENT_FORM_KEY).first()
    value = setting.value if setting and setting.value else DEFAULT_CONSENT_FORM
    return success_response({"consentForm": value}, "Consent form loaded")


@router.put("/consent-form")
def update_consent_form(
    data: ConsentFormPayload,
    user: AuthUser = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    require(user, SETTINGS_MANAGE, "You do not have permission to update settings")

    paragraphs = [p.strip() for p in (data.paragraphs or []) if p and p.strip()]
    if not paragraphs:
        raise ValidationFailed("Paragraphs are required")
    permission_text = (data.permission_text or "").strip()
    if not permission_text:
        raise ValidationFailed("Permission text is required")

    value = {"paragraphs": paragraphs, "permissionText": permission_text}
    setting = db.query(AppSetting).filter(AppSetting.key == CONSENT_FORM_KEY).first()
    if setting:
        setting.value = value
    else:
        db.add(AppSetting(key=CONSENT_FORM_KEY, value=value))
    db.commit()
    logger.info(f"Consent form updated by {user.id}")
    return success_response({"consentForm": value}, "Consent form saved")
