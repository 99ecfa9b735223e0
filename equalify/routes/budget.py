from typing import List, Optional
from fastapi import APIRouter, Depends, Query
from sqlmodel import Session
from equalify.auth import require_user
from equalify.db import engine
from equalify.schemas import (
    BudgetCategoryCreate, BudgetCategoryRead, BudgetCategoryUpdate, BudgetSpendCreate, BudgetSpendRead, MonthlyAmount,
)
from equalify.services import budget_service

router = APIRouter(prefix="/budgets", tags=["budgets"])

@router.get("", response_model=List[BudgetCategoryRead])
def list_categories(current_user = Depends(require_user)):
    with Session(engine) as s:
        return [budget_service.category_read(c) for c in budget_service.list_categories(s, current_user["id"])]

@router.post("", response_model=BudgetCategoryRead, status_code=201)
def create_category(data: BudgetCategoryCreate, current_user = Depends(require_user)):
    with Session(engine) as s:
        return budget_service.category_read(budget_service.create_category(s, current_user["id"], data))

@router.post("/expense", response_model=BudgetSpendRead, status_code=201)
def record_spend(data: BudgetSpendCreate, current_user = Depends(require_user)):
    with Session(engine) as s:
        entry, category = budget_service.record_spend(s, current_user["id"], data)
        return BudgetSpendRead(entry=budget_service.entry_read(entry), category=budget_service.category_read(category))

@router.get("/monthly-summary", response_model=List[MonthlyAmount])
def monthly_summary(year: Optional[int] = Query(default=None, ge=1, le=9998), current_user = Depends(require_user)):
    with Session(engine) as s:
        return budget_service.monthly_summary(s, current_user["id"], year)

@router.put("/{category_id}", response_model=BudgetCategoryRead)
def update_category(category_id: int, data: BudgetCategoryUpdate, current_user = Depends(require_user)):
    with Session(engine) as s:
        return budget_service.category_read(budget_service.update_category(s, current_user["id"], category_id, data))

@router.delete("/{category_id}")
def delete_category(category_id: int, current_user = Depends(require_user)):
    with Session(engine) as s:
        budget_service.delete_category(s, current_user["id"], category_id)
    return {"message": "Category deleted successfully"}
