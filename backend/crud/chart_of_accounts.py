from sqlalchemy.orm import Session
from models.chart_of_accounts import ChartOfAccounts
from models.account_balance_recap import AccountBalanceRecap
from models.journal_item import JournalItem
from schemas.chart_of_accounts import ChartOfAccountsCreate, ChartOfAccountsUpdate, BalanceRecapIn


def get_account_by_code(db: Session, account_code: str, tenant_id: str):
    return db.query(ChartOfAccounts).filter(
        ChartOfAccounts.account_code == account_code,
        ChartOfAccounts.tenant_id == tenant_id
    ).first()


def get_account(db: Session, account_id: int, tenant_id: str):
    return db.query(ChartOfAccounts).filter(
        ChartOfAccounts.id == account_id,
        ChartOfAccounts.tenant_id == tenant_id
    ).first()


def get_accounts(db: Session, tenant_id: str, search: str = None, include_inactive: bool = False,
                 skip: int = 0, limit: int = 500):
    query = db.query(ChartOfAccounts).filter(ChartOfAccounts.tenant_id == tenant_id)
    if not include_inactive:
        query = query.filter(ChartOfAccounts.is_active == True)  # noqa: E712
    if search:
        like = f"%{search.strip()}%"
        query = query.filter(ChartOfAccounts.account_code.like(like) | ChartOfAccounts.account_name.like(like))
    return query.order_by(ChartOfAccounts.account_code.asc()).offset(skip).limit(limit).all()


def get_account_names(db: Session, tenant_id: str, codes=None) -> dict:
    query = db.query(ChartOfAccounts.account_code, ChartOfAccounts.account_name).filter(
        ChartOfAccounts.tenant_id == tenant_id
    )
    if codes is not None:
        codes = [c for c in set(codes) if c]
        if not codes:
            return {}
        query = query.filter(ChartOfAccounts.account_code.in_(codes))
    return {code: name for code, name in query.all()}


def create_account(db: Session, account: ChartOfAccountsCreate, tenant_id: str, user_id: str = None):
    if get_account_by_code(db, account.account_code, tenant_id):
        raise ValueError(f"Account with code {account.account_code} already exists")
    db_account = ChartOfAccounts(**account.model_dump(), tenant_id=tenant_id, created_by=user_id)
    db.add(db_account)
    db.commit()
    db.refresh(db_account)
    return db_account


def account_in_use(db: Session, account_code: str, tenant_id: str) -> bool:
    return db.query(JournalItem.id).filter(
        JournalItem.account_code == account_code,
        JournalItem.tenant_id == tenant_id
    ).first() is not None


def update_account(db: Session, account_id: int, account_update: ChartOfAccountsUpdate, tenant_id: str,
                   user_id: str = None):
    db_account = get_account(db, account_id, tenant_id)
    if not db_account:
        return None

    update_data = account_update.model_dump(exclude_unset=True)
    if update_data.get('is_active') is False and account_in_use(db, db_account.account_code, tenant_id):
        raise ValueError("Cannot deactivate account because it is referenced by journal items.")

    for key, value in update_data.items():
        setattr(db_account, key, value)
    db_account.updated_by = user_id

    db.commit()
    db.refresh(db_account)
    return db_account


def deactivate_account(db: Session, account_id: int, tenant_id: str):
    db_account = get_account(db, account_id, tenant_id)
    if not db_account:
        return False
    if account_in_use(db, db_account.account_code, tenant_id):
        raise ValueError("Cannot delete account because it is referenced by journal items.")

    # Soft delete by setting is_active to False
    db_account.is_active = False
    db.commit()
    return True


def upsert_balance_recaps(db: Session, recaps: list, tenant_id: str):
    """Insert or overwrite monthly balances keyed by (recap_code, account_code)."""
    saved = []
    for recap in recaps:
        data = recap.model_dump() if isinstance(recap, BalanceRecapIn) else dict(recap)
        row = db.query(AccountBalanceRecap).filter(
            AccountBalanceRecap.tenant_id == tenant_id,
            AccountBalanceRecap.recap_code == data["recap_code"],
            AccountBalanceRecap.account_code == data["account_code"],
        ).first()
        if row:
            row.balance = data["balance"]
        else:
            row = AccountBalanceRecap(**data, tenant_id=tenant_id)
            db.add(row)
        saved.append(row)
    db.commit()
    return saved


def get_balance_recaps(db: Session, tenant_id: str, account_code: str = None, skip: int = 0, limit: int = 500):
    query = db.query(AccountBalanceRecap).filter(AccountBalanceRecap.tenant_id == tenant_id)
    if account_code:
        query = query.filter(AccountBalanceRecap.account_code == account_code)
    return query.order_by(AccountBalanceRecap.recap_code.desc(), AccountBalanceRecap.account_code.asc()) \
        .offset(skip).limit(limit).all()
