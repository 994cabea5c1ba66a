from fastapi import APIRouter, Depends, HTTPException, Request, status
from sqlalchemy.orm import Session

from auth import (
    create_access_token,
    create_refresh_token,
    decode_token,
    get_admin_from_subject,
    get_password_hash,
    token_subject,
    verify_password,
)
from database import get_db
from models import Admin, AdminRole, CellsAndAssociation
from schemas import (
    AdminCreate,
    AdminLogin,
    AdminResponse,
    PasswordChangeRequest,
    ProfileUpdate,
    RefreshTokenRequest,
    TokenResponse,
)
from security import require_admin, require_super_admin
from utils import log_admin_action

router = APIRouter()


def _issue_tokens(admin: Admin) -> TokenResponse:
    return TokenResponse(
        access_token=create_access_token(data={"sub": token_subject(admin)}),
        refresh_token=create_refresh_token(data={"sub": token_subject(admin)}),
        admin=AdminResponse.model_validate(admin),
    )


@router.post("/auth/login", response_model=TokenResponse)
def login(login_data: AdminLogin, db: Session = Depends(get_db)):
    admin = db.query(Admin).filter(Admin.email == login_data.email.lower()).first()
    if not admin or not verify_password(login_data.password, admin.hashed_password):
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid credentials")
    return _issue_tokens(admin)


@router.post("/auth/refresh", response_model=TokenResponse)
def refresh_token(token_data: RefreshTokenRequest, db: Session = Depends(get_db)):
    payload = decode_token(token_data.refresh_token)
    if payload.get("type") != "refresh":
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid token type")

    admin = get_admin_from_subject(db, payload.get("sub"))
    if not admin:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Admin not found")
    return _issue_tokens(admin)


@router.get("/auth/me", response_model=AdminResponse)
def get_me(admin: Admin = Depends(require_admin)):
    return AdminResponse.model_validate(admin)


@router.post("/auth/admins", response_model=AdminResponse, status_code=status.HTTP_201_CREATED)
def create_admin(
    admin_data: AdminCreate,
    request: Request,
    super_admin: Admin = Depends(require_super_admin),
    db: Session = Depends(get_db)
):
    email = str(admin_data.email).lower()
    if db.query(Admin).filter(Admin.email == email).first():
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="Admin already exists")

    new_admin = Admin(
        name=admin_data.name,
        email=email,
        hashed_password=get_password_hash(admin_data.password),
        role=AdminRole[admin_data.role.name],
        cells_and_association=CellsAndAssociation[admin_data.cells_and_association.name],
    )
    db.add(new_admin)
    db.commit()
    db.refresh(new_admin)
    log_admin_action(db, super_admin, "Create admin", request, {"admin_id": new_admin.id})
    return AdminResponse.model_validate(new_admin)


@router.get("/profile", response_model=AdminResponse)
def get_profile(admin: Admin = Depends(require_admin)):
    return AdminResponse.model_validate(admin)


@router.put("/profile", response_model=AdminResponse)
def update_profile(
    update_data: ProfileUpdate,
    request: Request,
    admin: Admin = Depends(require_admin),
    db: Session = Depends(get_db)
):
    if update_data.name:
        admin.name = update_data.name
    if update_data.email:
        email = str(update_data.email).lower()
        existing = db.query(Admin).filter(Admin.email == email, Admin.id != admin.id).first()
        if existing:
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Email is already taken by another admin")
        admin.email = email
    if update_data.cells_and_association:
        admin.cells_and_association = CellsAndAssociation[update_data.cells_and_association.name]

    db.commit()
    db.refresh(admin)
    log_admin_action(db, admin, "Update profile", request)
    return AdminResponse.model_validate(admin)


@router.put("/profile/password")
def change_password(
    password_data: PasswordChangeRequest,
    request: Request,
    admin: Admin = Depends(require_admin),
    db: Session = Depends(get_db)
):
    if not verify_password(password_data.current_password, admin.hashed_password):
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Current password is incorrect")
    admin.hashed_password = get_password_hash(password_data.new_password)
    db.commit()
    log_admin_action(db, admin, "Change password", request)
    return {"message": "Password changed successfully"}
