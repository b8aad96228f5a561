from fastapi import APIRouter, Depends, HTTPException
from app_utils.security import get_token_payload
from schemas import AiSuggestRequest
from services.issue_ai import suggest_department
from services.openai_client import OpenAIError
import logging

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/ai", tags=["AI"])


@router.post("/suggest")
def suggest(body: AiSuggestRequest, user=Depends(get_token_payload)):
    """
    Suggest the best department for an issue and whether it can be validated.
    """
    if not body.description and not body.photo:
        raise HTTPException(status_code=400, detail="description or photo required")

    try:
        return suggest_department(body.description, body.photo, body.departments)
    except OpenAIError as e:
        logger.error(f"AI suggest error: {e.response_data or e}")
        raise HTTPException(status_code=500, detail="AI suggestion failed")
