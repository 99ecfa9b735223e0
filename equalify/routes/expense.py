from typing import Dict, List
from decimal import Decimal
from fastapi import APIRouter, Depends
from sqlmodel import Session
from equalify.auth import require_user
from equalify.db import engine
from equalify.schemas import ExpenseCreate, ExpenseRead, ExpenseSummary
from equalify.services import expense_service

router = APIRouter(prefix="/expenses", tags=["expenses"])

@router.post("", response_model=ExpenseRead, status_code=201)
def create_expense(data: ExpenseCreate, current_user = Depends(require_user)):
    with Session(engine) as s:
        e = expense_service.create_expense(s, current_user["id"], data)
        return expense_service.expense_read(s, e)

@router.get("/recent", response_model=List[ExpenseRead])
def recent_expenses(current_user = Depends(require_user)):
    with Session(engine) as s:
        return [expense_service.expense_read(s, e) for e in expense_service.recent_expenses(s, current_user["id"])]

@router.get("/summary", response_model=ExpenseSummary)
def expense_summary(current_user = Depends(require_user)):
    with Session(engine) as s:
        return expense_service.expense_summary(s, current_user["id"])

@router.get("/monthly", response_model=Dict[str, Decimal])
def monthly_spending(current_user = Depends(require_user)):
    with Session(engine) as s:
        return expense_service.monthly_spending(s, current_user["id"])

@router.get("/{expense_id}", response_model=ExpenseRead)
def get_expense(expense_id: int, current_user = Depends(require_user)):
    with Session(engine) as s:
        return expense_service.expense_read(s, expense_service.read_expense(s, current_user["id"], expense_id))

@router.post("/{expense_id}/settle", response_model=ExpenseRead)
def settle_expense(expense_id: int, current_user = Depends(require_user)):
    with Session(engine) as s:
        e = expense_service.settle_expense(s, current_user["id"], expense_id)
        return expense_service.expense_read(s, e)

@router.delete("/{expense_id}")
def delete_expense(expense_id: int, current_user = Depends(require_user)):
    with Session(engine) as s:
        expense_service.delete_expense(s, current_user["id"], expense_id)
    return {"message": "Expense deleted successfully"}
