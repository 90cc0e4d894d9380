from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session
from typing import List, Optional
import logging

from database import get_db
from models.vendors import Vendor as VendorModel
from schemas.vendors import Vendor, VendorCreate, VendorUpdate
from utils.tenancy import get_tenant_id, get_user_id

router = APIRouter(prefix="/vendors", tags=["Vendors"])
logger = logging.getLogger("vendors")


@router.post("/", response_model=Vendor, status_code=status.HTTP_201_CREATED)
def create_vendor(
    vendor: VendorCreate,
    db: Session = Depends(get_db),
    tenant_id: str = Depends(get_tenant_id),
    user_id: str = Depends(get_user_id),
):
    """Create a new vendor."""
    db_vendor = db.query(VendorModel).filter(
        VendorModel.vendor_code == vendor.vendor_code,
        VendorModel.tenant_id == tenant_id,
    ).first()
    if db_vendor:
        raise HTTPException(status_code=400, detail="Vendor with this code already exists")

    db_vendor = VendorModel(**vendor.model_dump(), tenant_id=tenant_id, created_by=user_id)
    db.add(db_vendor)
    db.commit()
    db.refresh(db_vendor)
    logger.info(f"Vendor '{db_vendor.name}' created by {user_id}")
    return db_vendor


@router.get("/", response_model=List[Vendor])
def read_vendors(
    search: Optional[str] = None,
    skip: int = 0,
    limit: int = 100,
    db: Session = Depends(get_db),
    tenant_id: str = Depends(get_tenant_id),
):
    """Retrieve vendors, optionally filtered by code or name."""
    query = db.query(VendorModel).filter(VendorModel.tenant_id == tenant_id)
    if search:
        like = f"%{search.strip()}%"
        query = query.filter(VendorModel.vendor_code.like(like) | VendorModel.name.like(like))
    return query.order_by(VendorModel.name.asc()).offset(skip).limit(limit).all()


@router.get("/{vendor_id}", response_model=Vendor)
def read_vendor(vendor_id: int, db: Session = Depends(get_db), tenant_id: str = Depends(get_tenant_id)):
    """Retrieve a single vendor by ID."""
    db_vendor = db.query(VendorModel).filter(VendorModel.id == vendor_id, VendorModel.tenant_id == tenant_id).first()
    if db_vendor is None:
        raise HTTPException(status_code=404, detail="Vendor not found")
    return db_vendor


@router.patch("/{vendor_id}", response_model=Vendor)
def update_vendor(
    vendor_id: int,
    vendor: VendorUpdate,
    db: Session = Depends(get_db),
    tenant_id: str = Depends(get_tenant_id),
    user_id: str = Depends(get_user_id),
):
    db_vendor = db.query(VendorModel).filter(VendorModel.id == vendor_id, VendorModel.tenant_id == tenant_id).first()
    if db_vendor is None:
        raise HTTPException(status_code=404, detail="Vendor not found")
    for key, value in vendor.model_dump(exclude_unset=True).items():
        setattr(db_vendor, key, value)
    db_vendor.updated_by = user_id
    db.commit()
    db.refresh(db_vendor)
    logger.info(f"Vendor '{db_vendor.name}' updated by {user_id}")
    return db_vendor
