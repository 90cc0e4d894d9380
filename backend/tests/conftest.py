"""
Pytest fixtures for the back-office API.

Provides:
- A fresh in-memory SQLite database for every test
- A TestClient bound to that database, sending the dbsja tenant header
- Small factories for accounts, vouchers and invoices
"""
import os

# database.py builds its engine at import time
os.environ["DATABASE_URL"] = "sqlite://"
os.environ.pop("DSS_LLM_URL", None)
os.environ.pop("TENANT_DATABASES", None)

from datetime import date
from decimal import Decimal

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

import models  # noqa: F401
from database import Base, get_db
from main import app
from models.cash_voucher import CashVoucher
from models.chart_of_accounts import ChartOfAccounts
from models.purchase_invoices import PurchaseInvoice
from models.purchase_orders import PurchaseOrder

TENANT = "dbsja"


@pytest.fixture
def engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    yield engine
    Base.metadata.drop_all(bind=engine)
    engine.dispose()


@pytest.fixture
def db(engine):
    TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)
    session = TestingSessionLocal()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def client(engine):
    TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

    def override_get_db():
        session = TestingSessionLocal()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = override_get_db
    with TestClient(app, headers={"X-Tenant-ID": TENANT}) as test_client:
        yield test_client
    app.dependency_overrides.clear()


@pytest.fixture
def add_accounts(db):
    def _add(*pairs, tenant_id=TENANT):
        for code, name in pairs:
            db.add(ChartOfAccounts(account_code=code, account_name=name, is_active=True, tenant_id=tenant_id))
        db.commit()
    return _add


@pytest.fixture
def add_voucher(db):
    def _add(code, account, mutation, description, voucher_date=date(2024, 1, 15), slots=(), tenant_id=TENANT):
        voucher = CashVoucher(
            voucher_code=code,
            account_code=account,
            voucher_date=voucher_date,
            description=description,
            cash_mutation=Decimal(str(mutation)),
            balance=Decimal(str(mutation)),
            tenant_id=tenant_id,
        )
        for idx, (slot_account, amount, side) in enumerate(slots, start=1):
            setattr(voucher, f"account_{idx}", slot_account)
            setattr(voucher, f"amount_{idx}", Decimal(str(amount)) if amount is not None else None)
            setattr(voucher, f"side_{idx}", side)
        db.add(voucher)
        db.commit()
        return voucher
    return _add


@pytest.fixture
def add_invoice(db):
    def _add(number="FI00000001", total="1110", tax="110", paid="0", po_number="PO001",
             vendor_name="CV Maju Jaya", journal_voucher="", tenant_id=TENANT):
        total, tax = Decimal(total), Decimal(tax)
        invoice = PurchaseInvoice(
            invoice_number=number,
            po_number=po_number,
            vendor_name=vendor_name,
            invoice_date=date(2024, 2, 1),
            subtotal=total - tax,
            tax=tax,
            total=total,
            paid_amount=Decimal(paid),
            outstanding=total,
            journal_voucher=journal_voucher,
            tenant_id=tenant_id,
        )
        db.add(invoice)
        db.commit()
        return invoice
    return _add


@pytest.fixture
def add_purchase_order(db):
    def _add(po_number="PO001", ppn="11", vendor_name="CV Maju Jaya", tenant_id=TENANT):
        db.add(PurchaseOrder(po_number=po_number, vendor_name=vendor_name, ppn=Decimal(ppn),
                             payment_terms="30 days", tenant_id=tenant_id))
        db.commit()
    return _add
