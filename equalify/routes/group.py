from typing import List
from fastapi import APIRouter, Depends
from sqlmodel import Session
from equalify.auth import require_user
from equalify.db import engine
from equalify.schemas import (
    ExpenseRead, GroupCreate, GroupRead, GroupUpdate, MemberAdd, MemberBalance, MemberRoleUpdate,
)
from equalify.services import expense_service, group_service

router = APIRouter(prefix="/groups", tags=["groups"])

@router.post("", response_model=GroupRead, status_code=201)
def create_group(data: GroupCreate, current_user = Depends(require_user)):
    with Session(engine) as s:
        g = group_service.create_group(s, current_user["id"], data)
        return group_service.group_read(s, g)

@router.get("", response_model=List[GroupRead])
def list_groups(current_user = Depends(require_user)):
    with Session(engine) as s:
        return [group_service.group_read(s, g) for g in group_service.list_groups(s, current_user["id"])]

@router.get("/{group_id}", response_model=GroupRead)
def view_group(group_id: int, current_user = Depends(require_user)):
    with Session(engine) as s:
        group = group_service.get_group(s, group_id)
        group_service.require_member(s, group_id, current_user["id"])
        return group_service.group_read(s, group)

@router.patch("/{group_id}", response_model=GroupRead)
def update_group(group_id: int, data: GroupUpdate, current_user = Depends(require_user)):
    with Session(engine) as s:
        g = group_service.update_group(s, current_user["id"], group_id, data)
        return group_service.group_read(s, g)

@router.delete("/{group_id}")
def delete_group(group_id: int, current_user = Depends(require_user)):
    with Session(engine) as s:
        group_service.delete_group(s, current_user["id"], group_id)
    return {"message": "Group deleted"}

@router.post("/{group_id}/members", response_model=GroupRead)
def add_member(group_id: int, data: MemberAdd, current_user = Depends(require_user)):
    with Session(engine) as s:
        g = group_service.add_member(s, current_user["id"], group_id, data.user_id, data.role)
        return group_service.group_read(s, g)

@router.patch("/{group_id}/members/{user_id}", response_model=GroupRead)
def set_member_role(group_id: int, user_id: int, data: MemberRoleUpdate, current_user = Depends(require_user)):
    with Session(engine) as s:
        g = group_service.set_member_role(s, current_user["id"], group_id, user_id, data.role)
        return group_service.group_read(s, g)

@router.delete("/{group_id}/members/{user_id}")
def remove_member(group_id: int, user_id: int, current_user = Depends(require_user)):
    with Session(engine) as s:
        group_service.remove_member(s, current_user["id"], group_id, user_id)
    return {"message": "Member removed from group"}

@router.get("/{group_id}/expenses", response_model=List[ExpenseRead])
def group_expenses(group_id: int, current_user = Depends(require_user)):
    with Session(engine) as s:
        expenses = expense_service.group_expenses(s, current_user["id"], group_id)
        return [expense_service.expense_read(s, e) for e in expenses]

@router.get("/{group_id}/balances", response_model=List[MemberBalance])
def group_balances(group_id: int, current_user = Depends(require_user)):
    with Session(engine) as s:
        return group_service.group_balances(s, current_user["id"], group_id)
