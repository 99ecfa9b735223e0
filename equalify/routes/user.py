from typing import List
from fastapi import APIRouter, Depends
from sqlmodel import Session, select
from equalify.auth import require_user
from equalify.db import engine
from equalify.errors import NotFound
from equalify.models.user import User
from equalify.schemas import UserRead

router = APIRouter(prefix="/users", tags=["users"])

@router.get("/me", response_model=UserRead)
def me(current_user = Depends(require_user)):
    with Session(engine) as s:
        user = s.get(User, current_user["id"])
        if not user:
            raise NotFound("User not found", user_id=current_user["id"])
        return user

@router.get("/search", response_model=List[UserRead])
def search_users(query: str = "", current_user = Depends(require_user)):
    query = query.strip()
    if not query:
        return []
    pattern = f"%{query}%"
    with Session(engine) as s:
        return s.exec(
            select(User).where(
                User.id != current_user["id"],
                User.name.ilike(pattern) | User.email.ilike(pattern),
            ).order_by(User.name)
        ).all()
