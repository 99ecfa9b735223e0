from typing import List
from fastapi import APIRouter, Depends
from sqlmodel import Session
from equalify.auth import require_user
from equalify.db import engine
from equalify.schemas import BalanceSummary, FriendAdd, FriendBalance, SettlementCreate
from equalify.services import balance_service, friend_service, settlement_service

router = APIRouter(prefix="/friends", tags=["friends"])

@router.get("", response_model=List[FriendBalance])
def list_friends(current_user = Depends(require_user)):
    with Session(engine) as s:
        return balance_service.list_friend_balances(s, current_user["id"])

@router.post("", response_model=FriendBalance, status_code=201)
def add_friend(data: FriendAdd, current_user = Depends(require_user)):
    with Session(engine) as s:
        return friend_service.add_friend(s, current_user["id"], data.email)

@router.get("/balance", response_model=BalanceSummary)
def total_balance(current_user = Depends(require_user)):
    with Session(engine) as s:
        return balance_service.total_balance(s, current_user["id"])

@router.get("/owing-me", response_model=List[FriendBalance])
def friends_owing_me(current_user = Depends(require_user)):
    with Session(engine) as s:
        return friend_service.friends_owing_me(s, current_user["id"])

@router.get("/i-owe", response_model=List[FriendBalance])
def friends_i_owe(current_user = Depends(require_user)):
    with Session(engine) as s:
        return friend_service.friends_i_owe(s, current_user["id"])

@router.get("/{friend_id}", response_model=FriendBalance)
def get_friend(friend_id: int, current_user = Depends(require_user)):
    with Session(engine) as s:
        return friend_service.get_friend(s, current_user["id"], friend_id)

@router.post("/{friend_id}/settle", response_model=FriendBalance)
def record_settlement(friend_id: int, data: SettlementCreate, current_user = Depends(require_user)):
    with Session(engine) as s:
        return settlement_service.settle(s, current_user["id"], friend_id, data.amount, data.direction)

@router.delete("/{friend_id}")
def remove_friend(friend_id: int, current_user = Depends(require_user)):
    with Session(engine) as s:
        friend_service.remove_friend(s, current_user["id"], friend_id)
    return {"message": "Friend removed"}
