from typing import Optional
import logging

from fastapi import APIRouter, Depends
from fastapi.encoders import jsonable_encoder
from fastapi.responses import JSONResponse
from pydantic import BaseModel, ConfigDict, Field

from fooddelivery.auth.context import AuthContext
from fooddelivery.reviews import service as reviews_service
from fooddelivery.utils.rate_limit import optional_rate_limit
from fooddelivery.utils.security import require_user

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/v1/restaurants", tags=["Reviews API"])


class ReviewRequest(BaseModel):
    model_config = ConfigDict(extra="forbid")

    # Bornes vérifiées par le service (InvalidInput)
    rating: int
    comment: Optional[str] = Field(default=None, max_length=2000)


@router.get("/{restaurant_id}/reviews")
def api_list_reviews(restaurant_id: str):
    return reviews_service.list_reviews(restaurant_id)


@router.post("/{restaurant_id}/reviews", status_code=201, dependencies=[Depends(optional_rate_limit(times=5, seconds=60))])
def api_create_review(restaurant_id: str, req: ReviewRequest, user: AuthContext = Depends(require_user)):
    """Ajoute l'avis de l'utilisateur courant; 409 si déjà noté."""
    review = reviews_service.create_review(user, restaurant_id, req.rating, req.comment)
    return JSONResponse(status_code=201, content=jsonable_encoder(review))
