from fastapi import APIRouter, Depends, HTTPException, Request, status
from sqlalchemy.orm import Session

from database import get_db
from models import Admin, Member
from schemas import MemberCreate, MemberResponse, MemberUpdate
from security import require_admin
from utils import log_admin_action

router = APIRouter()


@router.post("/members", response_model=MemberResponse, status_code=status.HTTP_201_CREATED)
def create_member(
    member_data: MemberCreate,
    request: Request,
    admin: Admin = Depends(require_admin),
    db: Session = Depends(get_db)
):
    member = Member(**member_data.model_dump())
    db.add(member)
    db.commit()
    db.refresh(member)
    log_admin_action(db, admin, "Create member", request, {"member_id": member.id})
    return MemberResponse.model_validate(member)


@router.put("/members/{member_id}", response_model=MemberResponse)
def update_member(
    member_id: int,
    member_data: MemberUpdate,
    request: Request,
    admin: Admin = Depends(require_admin),
    db: Session = Depends(get_db)
):
    member = db.query(Member).filter(Member.id == member_id).first()
    if not member:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Member not found")

    for field, value in member_data.model_dump(exclude_unset=True).items():
        setattr(member, field, value)

    db.commit()
    db.refresh(member)
    log_admin_action(db, admin, "Update member", request, {"member_id": member_id})
    return MemberResponse.model_validate(member)


@router.delete("/members/{member_id}")
def delete_member(
    member_id: int,
    request: Request,
    admin: Admin = Depends(require_admin),
    db: Session = Depends(get_db)
):
    member = db.query(Member).filter(Member.id == member_id).first()
    if not member:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Member not found")
    db.delete(member)
    db.commit()
    log_admin_action(db, admin, "Delete member", request, {"member_id": member_id})
    return {"message": "Member deleted successfully"}
