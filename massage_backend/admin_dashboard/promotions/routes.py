from fastapi import APIRouter, Depends, status
from sqlmodel.ext.asyncio.session import AsyncSession
from uuid import UUID
from typing import List

from massage_backend.db.main import get_session
from . import schemas
from .service import PromotionAdminService

promotion_router = APIRouter()
promotion_service = PromotionAdminService()


@promotion_router.get("/", response_model=List[schemas.PromotionResponse])
async def list_promotions(session: AsyncSession = Depends(get_session)):
    return await promotion_service.list_promotions(session)


@promotion_router.get("/{promotion_id}", response_model=schemas.PromotionResponse)
async def read_promotion(promotion_id: UUID, session: AsyncSession = Depends(get_session)):
    return await promotion_service.get_promotion(session, promotion_id)


@promotion_router.post("/", response_model=schemas.PromotionResponse, status_code=status.HTTP_201_CREATED)
async def create_promotion(data: schemas.PromotionCreate, session: AsyncSession = Depends(get_session)):
    return await promotion_service.create_promotion(session, data)


@promotion_router.put("/{promotion_id}", response_model=schemas.PromotionResponse)
async def update_promotion(promotion_id: UUID, data: schemas.PromotionUpdate, session: AsyncSession = Depends(get_session)):
    return await promotion_service.update_promotion(session, promotion_id, data)


@promotion_router.delete("/{promotion_id}", status_code=status.HTTP_200_OK)
async def delete_promotion(promotion_id: UUID, session: AsyncSession = Depends(get_session)):
    await promotion_service.delete_promotion(session, promotion_id)
    return {"message": "Promotion deleted successfully"}


@promotion_router.get("/{promotion_id}/report", response_model=schemas.PromotionReport)
async def promotion_report(promotion_id: UUID, session: AsyncSession = Depends(get_session)):
    return await promotion_service.get_report(session, promotion_id)
