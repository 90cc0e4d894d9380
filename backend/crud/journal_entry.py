import logging
from datetime import date
from typing import Optional

from sqlalchemy import func
from sqlalchemy.orm import Session

from crud.audit_log import record_change
from crud.chart_of_accounts import get_account_names
from models import journal_entry as journal_entry_model
from models import journal_item as journal_item_model
from schemas.journal_entry import JournalEntryCreate
from utils import sqlalchemy_to_dict
from utils.accounting import next_code
from utils.tenancy import database_code

logger = logging.getLogger("journal_entries")


def next_journal_code(db: Session, tenant_id: str) -> str:
    prefix = f"{database_code(tenant_id)}/JU/"
    last = db.query(func.max(journal_entry_model.JournalEntry.journal_code)).filter(
        journal_entry_model.JournalEntry.tenant_id == tenant_id,
        journal_entry_model.JournalEntry.journal_code.like(f"{prefix}%"),
    ).scalar()
    return next_code(last, prefix)


def create_journal_entry(db: Session, entry: JournalEntryCreate, tenant_id: str, user_id: str = "system"):
    """
    Creates a new journal entry and its corresponding items.
    Every item must post to an account of the tenant's chart of accounts.
    """
    codes = {item.account_code.strip() for item in entry.items}
    known = get_account_names(db, tenant_id, list(codes))
    missing = sorted(codes - set(known))
    if missing:
        raise ValueError(f"Unknown account(s): {', '.join(missing)}")

    try:
        db_entry = journal_entry_model.JournalEntry(
            journal_code=next_journal_code(db, tenant_id),
            journal_date=entry.journal_date,
            voucher_code=entry.voucher_code,
            remark=entry.remark,
            tenant_id=tenant_id,
            created_by=user_id,
        )
        db.add(db_entry)
        db.flush()  # Flush to get the ID for the parent entry before creating children

        for item_data in entry.items:
            db_item = journal_item_model.JournalItem(
                account_code=item_data.account_code.strip(),
                debit=item_data.debit,
                credit=item_data.credit,
                journal_entry_id=db_entry.id,
                tenant_id=tenant_id
            )
            db.add(db_item)

        db.commit()
    except Exception:
        db.rollback()
        raise

    db.refresh(db_entry)
    logger.info(f"Journal {db_entry.journal_code} created (tenant {tenant_id})")
    record_change(db, 'journal_entries', db_entry.id, 'CREATE', user_id, tenant_id,
                  new_values=sqlalchemy_to_dict(db_entry))
    return db_entry


def get_journal_entry(db: Session, entry_id: int, tenant_id: str):
    return db.query(journal_entry_model.JournalEntry).filter(
        journal_entry_model.JournalEntry.id == entry_id,
        journal_entry_model.JournalEntry.tenant_id == tenant_id
    ).first()


def get_journal_entries(
    db: Session,
    tenant_id: str,
    start_date: Optional[date] = None,
    end_date: Optional[date] = None,
    skip: int = 0,
    limit: int = 100
):
    """
    Retrieves a list of journal entries with optional date filtering.
    """
    query = db.query(journal_entry_model.JournalEntry).filter(
        journal_entry_model.JournalEntry.tenant_id == tenant_id
    )

    if start_date:
        query = query.filter(journal_entry_model.JournalEntry.journal_date >= start_date)
    if end_date:
        query = query.filter(journal_entry_model.JournalEntry.journal_date <= end_date)

    return query.order_by(
        journal_entry_model.JournalEntry.journal_date.desc(),
        journal_entry_model.JournalEntry.id.desc()
    ).offset(skip).limit(limit).all()
