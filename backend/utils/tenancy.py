import os
import re
from typing import Optional

from fastapi import Header, HTTPException

# Tenant databases the back office may serve; TENANT_DATABASES overrides it.
DEFAULT_TENANT_DATABASES = ["dbsja", "dbbbbs", "dbstg", "dbarm", "dbati"]

TENANT_LABELS = {
    "dbsja": "DB SJA",
    "dbbbbs": "DB BBBS",
    "dbstg": "DB STG",
    "dbarm": "DB ARM",
    "dbati": "DB ATI",
}

TENANT_COMPANIES = {
    "dbsja": {
        "name": "CV. SEMESTA JAYA ABADI",
        "address": "Jalan Sentosa No 31B RT. 35 Kel. Sungai Pinang Dalam Kec. Sungai Pinang",
        "city": "Kota Samarinda Provinsi Kalimantan Timur",
        "phone": "0541-771571",
        "email": "cs_sja@yahoo.com",
    },
    "dbstg": {
        "name": "CV. SURYA TEKNIK GEMILANG",
        "address": "Jl. Harmoni II (Lingkar Dalam Selatan) RT. 026/002, Pekapuran Raya, Banjarmasin Timur",
        "city": "Kota Banjarmasin Provinsi Kalimantan Selatan",
        "phone": "0511 - 6783217",
        "email": "",
    },
}


def allowed_tenants():
    raw = os.getenv("TENANT_DATABASES", "")
    configured = [t.strip().lower() for t in raw.split(",") if t.strip()]
    return configured or list(DEFAULT_TENANT_DATABASES)


def tenant_label(tenant_id: str) -> str:
    return TENANT_LABELS.get(tenant_id, tenant_id.upper())


def tenant_company(tenant_id: str) -> Optional[dict]:
    return TENANT_COMPANIES.get(tenant_id)


def database_code(tenant_id: Optional[str]) -> str:
    """Short code used as the prefix of voucher and journal numbers.

    ``dbsja`` -> ``SJA``, ``db-stg`` -> ``STG``; empty input falls back to ``SJA``.
    """
    code = re.sub(r"[^A-Za-z0-9]", "", tenant_id or "")
    code = re.sub(r"^db", "", code, flags=re.IGNORECASE).upper()
    return code or "SJA"


def get_tenant_id(x_tenant_id: Optional[str] = Header(None)) -> str:
    if not x_tenant_id:
        raise HTTPException(status_code=400, detail="X-Tenant-ID header is missing")
    tenant_id = x_tenant_id.strip().lower()
    if tenant_id not in allowed_tenants():
        raise HTTPException(status_code=400, detail=f"Unknown tenant '{x_tenant_id}'")
    return tenant_id


def get_user_id(x_user_id: Optional[str] = Header(None)) -> str:
    """Identifier written to created_by/updated_by and the audit log."""
    return (x_user_id or "").strip() or "system"
