from typing import Optional
from fastapi import Depends, HTTPException, status
from sqlalchemy.orm import Query

from auth import get_current_admin
from models import Admin, AdminRole, CellsAndAssociation, Event


def is_super_admin(admin: Admin) -> bool:
    return admin.role == AdminRole.SUPER_ADMIN


def require_admin(admin: Admin = Depends(get_current_admin)) -> Admin:
    return admin


def require_super_admin(admin: Admin = Depends(get_current_admin)) -> Admin:
    if not is_super_admin(admin):
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Super admin access required")
    return admin


def ensure_owner(admin: Admin, created_by: Optional[int]) -> None:
    if created_by != admin.id and not is_super_admin(admin):
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Access denied")


def scope_events(query: Query, admin: Admin, cells_and_association: Optional[str] = None) -> Query:
    # Only the overall team (OT) may look across associations.
    if admin.cells_and_association != CellsAndAssociation.OT:
        return query.filter(Event.cells_and_association == admin.cells_and_association)
    if cells_and_association and cells_and_association != "ALL":
        try:
            scope = CellsAndAssociation(cells_and_association)
        except ValueError:
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Invalid Cells and Association")
        return query.filter(Event.cells_and_association == scope)
    return query
