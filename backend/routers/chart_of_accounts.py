from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session
from typing import List, Optional
import logging

from database import get_db
from schemas.chart_of_accounts import (
    AccountOption,
    BalanceRecap,
    BalanceRecapBulk,
    ChartOfAccounts,
    ChartOfAccountsCreate,
    ChartOfAccountsUpdate,
)
from crud import chart_of_accounts as crud_accounts
from crud import accounts as crud_account_options
from utils.tenancy import get_tenant_id, get_user_id

router = APIRouter(
    prefix="/chart-of-accounts",
    tags=["Chart of Accounts"],
)
logger = logging.getLogger("chart_of_accounts")


@router.post("/", response_model=ChartOfAccounts, status_code=status.HTTP_201_CREATED)
def create_account(
    account: ChartOfAccountsCreate,
    db: Session = Depends(get_db),
    tenant_id: str = Depends(get_tenant_id),
    user_id: str = Depends(get_user_id),
):
    try:
        db_account = crud_accounts.create_account(db, account, tenant_id, user_id)
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
    logger.info(f"Account {db_account.account_code} created for tenant {tenant_id}")
    return db_account


@router.get("/", response_model=List[ChartOfAccounts])
def get_accounts(
    search: Optional[str] = None,
    include_inactive: bool = False,
    skip: int = 0,
    limit: int = 500,
    db: Session = Depends(get_db),
    tenant_id: str = Depends(get_tenant_id),
):
    return crud_accounts.get_accounts(db, tenant_id, search=search, include_inactive=include_inactive,
                                      skip=skip, limit=limit)


@router.get("/options", response_model=List[AccountOption])
def get_account_options(
    limit: int = 5000,
    db: Session = Depends(get_db),
    tenant_id: str = Depends(get_tenant_id),
):
    return crud_account_options.gl_account_options(db, tenant_id, limit=limit)


@router.post("/balance-recaps", response_model=List[BalanceRecap])
def upsert_balance_recaps(
    payload: BalanceRecapBulk,
    db: Session = Depends(get_db),
    tenant_id: str = Depends(get_tenant_id),
):
    saved = crud_accounts.upsert_balance_recaps(db, payload.recaps, tenant_id)
    logger.info(f"{len(saved)} balance recap rows saved for tenant {tenant_id}")
    return saved


@router.get("/balance-recaps", response_model=List[BalanceRecap])
def get_balance_recaps(
    account_code: Optional[str] = None,
    skip: int = 0,
    limit: int = 500,
    db: Session = Depends(get_db),
    tenant_id: str = Depends(get_tenant_id),
):
    return crud_accounts.get_balance_recaps(db, tenant_id, account_code=account_code, skip=skip, limit=limit)


@router.get("/{account_id}", response_model=ChartOfAccounts)
def get_account(
    account_id: int,
    db: Session = Depends(get_db),
    tenant_id: str = Depends(get_tenant_id),
):
    account = crud_accounts.get_account(db, account_id, tenant_id)
    if not account:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Account with id {account_id} not found"
        )
    return account


@router.patch("/{account_id}", response_model=ChartOfAccounts)
def update_account(
    account_id: int,
    account_update: ChartOfAccountsUpdate,
    db: Session = Depends(get_db),
    tenant_id: str = Depends(get_tenant_id),
    user_id: str = Depends(get_user_id),
):
    try:
        account = crud_accounts.update_account(db, account_id, account_update, tenant_id, user_id)
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
    if not account:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Account with id {account_id} not found"
        )
    return account


@router.delete("/{account_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_account(
    account_id: int,
    db: Session = Depends(get_db),
    tenant_id: str = Depends(get_tenant_id),
):
    try:
        found = crud_accounts.deactivate_account(db, account_id, tenant_id)
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
    if not found:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Account with id {account_id} not found"
        )
    return None
