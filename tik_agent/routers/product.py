import logging

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from tik_agent.auth import get_current_user
from tik_agent.core.redis import get_product_cache
from tik_agent.database import get_db
from tik_agent.models.user import User
from tik_agent.repositories.video_repository import VideoRepository
from tik_agent.schemas.product import AnalyzeRequest, AnalyzeResponse, ProductOut
from tik_agent.services.product_cache import ProductCache
from tik_agent.services.product_extractor import analyze_product

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/trpc", tags=["product"])


@router.post("/product.analyze", response_model=AnalyzeResponse)
def analyze(
    body: AnalyzeRequest,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
    cache: ProductCache | None = Depends(get_product_cache),
):
    """Extract product data (fallback content when the page is unreachable) and open a pending Video."""
    url = body.url
    product = analyze_product(url, cache=cache)
    try:
        video = VideoRepository(db).create(
            user.id,
            url,
            product_name=product.name,
            product_price=product.price,
            product_description=product.description,
            product_image=product.image,
        )
    except SQLAlchemyError as e:
        db.rollback()
        logger.exception("Failed to store analyzed product for %s", url)
        raise HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail=f"Failed to analyze product: {e}")
    return AnalyzeResponse(video_id=video.id, product=ProductOut(**product.to_dict()))
