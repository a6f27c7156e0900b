from fastapi import APIRouter, Depends
from sqlmodel.ext.asyncio.session import AsyncSession

from massage_backend.db.main import get_session
from massage_backend.auth.dependencies import get_current_user
from massage_backend.db.models import User
from .repository import PromotionRepository
from .schemas import PromoValidateRequest, PromoValidateResponse
from .service import PromoValidator

user_promotion_router = APIRouter()


def get_promotion_repository(session: AsyncSession = Depends(get_session)) -> PromotionRepository:
    return PromotionRepository(session)


@user_promotion_router.post("/validate", response_model=PromoValidateResponse)
async def validate_promo_code(
    data: PromoValidateRequest,
    repository: PromotionRepository = Depends(get_promotion_repository),
    current_user: User = Depends(get_current_user),
):
    """Check a promo code against the current basket.

    Rejections are returned with ``valid=false`` and an ``error_kind``
    translation key rather than an error status.
    """
    validator = PromoValidator(repository)
    result = await validator.validate(
        data.code,
        data.order_amount,
        current_user.uid,
        data.service_ids,
        data.categories,
    )
    return result.to_response()
