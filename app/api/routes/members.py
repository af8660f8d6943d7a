# app/api/routes/members.py
import logging
from http import HTTPStatus

from fastapi import APIRouter, Depends, HTTPException, Path
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.dependencies.api_key import verify_api_key
from app.db.session import get_db
from app.models.member import FamilyMember
from app.schemas.member import MemberCreate, MemberRead

logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/members",
    tags=["Members"],
    dependencies=[Depends(verify_api_key)],
)


@router.post(
    "",
    response_model=MemberRead,
    status_code=HTTPStatus.CREATED,
    summary="Add a family member",
    description="Register a family member who can be invited to events.",
)
async def create_member(
    payload: MemberCreate,
    db: AsyncSession = Depends(get_db),
) -> MemberRead:
    member = FamilyMember(name=payload.name, color=payload.color)
    db.add(member)
    await db.commit()
    await db.refresh(member)

    logger.info("Created family member %s", member.id)
    return MemberRead.model_validate(member)


@router.get(
    "",
    response_model=list[MemberRead],
    summary="List family members",
)
async def list_members(db: AsyncSession = Depends(get_db)) -> list[MemberRead]:
    result = await db.execute(select(FamilyMember).order_by(FamilyMember.name.asc()))
    return [MemberRead.model_validate(m) for m in result.scalars().all()]


@router.get(
    "/{member_id}",
    response_model=MemberRead,
    summary="Get a family member by ID",
    responses={404: {"description": "No member exists with the given ID."}},
)
async def get_member(
    member_id: str = Path(..., description="Identifier of the member."),
    db: AsyncSession = Depends(get_db),
) -> MemberRead:
    member = await db.get(FamilyMember, member_id)
    if member is None:
        raise HTTPException(
            status_code=HTTPStatus.NOT_FOUND,
            detail=f"Member with id {member_id} not found.",
        )
    return MemberRead.model_validate(member)
