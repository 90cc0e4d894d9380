from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session, selectinload
from typing import List, Optional
import logging
from decimal import Decimal

from database import get_db
from models.purchase_orders import PurchaseOrder as PurchaseOrderModel
from models.purchase_order_items import PurchaseOrderItem as PurchaseOrderItemModel
from schemas.purchase_orders import PurchaseOrder as PurchaseOrderSchema, PurchaseOrderCreate
from utils.tenancy import get_tenant_id, get_user_id

router = APIRouter(prefix="/purchase-orders", tags=["Purchase Orders"])
logger = logging.getLogger("purchase_orders")


@router.post("/", response_model=PurchaseOrderSchema, status_code=status.HTTP_201_CREATED)
def create_purchase_order(
    po: PurchaseOrderCreate,
    db: Session = Depends(get_db),
    tenant_id: str = Depends(get_tenant_id),
    user_id: str = Depends(get_user_id),
):
    """Register a purchase order and its material lines."""
    if not po.items:
        raise HTTPException(status_code=400, detail="Purchase order must contain at least one item.")

    existing = db.query(PurchaseOrderModel).filter(
        PurchaseOrderModel.po_number == po.po_number,
        PurchaseOrderModel.tenant_id == tenant_id,
    ).first()
    if existing:
        raise HTTPException(status_code=400, detail=f"Purchase order {po.po_number} already exists")

    db_po = PurchaseOrderModel(
        po_number=po.po_number,
        vendor_name=po.vendor_name,
        order_date=po.order_date,
        ppn=po.ppn,
        payment_terms=po.payment_terms,
        created_by=user_id,
        tenant_id=tenant_id,
    )
    db.add(db_po)
    db.flush()  # Flush to get db_po.id before adding items

    for item in po.items:
        db.add(PurchaseOrderItemModel(
            purchase_order_id=db_po.id,
            material_code=item.material_code,
            material=item.material,
            quantity=item.quantity,
            price=item.price,
            received_qty=Decimal(0),
            received_value=Decimal(0),
            tenant_id=tenant_id,
        ))

    db.commit()
    db.refresh(db_po)
    logger.info(f"Purchase order {db_po.po_number} created for tenant {tenant_id}")
    return db_po


@router.get("/", response_model=List[PurchaseOrderSchema])
def list_purchase_orders(
    search: Optional[str] = None,
    skip: int = 0,
    limit: int = 100,
    db: Session = Depends(get_db),
    tenant_id: str = Depends(get_tenant_id),
):
    query = db.query(PurchaseOrderModel).filter(PurchaseOrderModel.tenant_id == tenant_id) \
        .options(selectinload(PurchaseOrderModel.items))
    if search:
        like = f"%{search.strip()}%"
        query = query.filter(PurchaseOrderModel.po_number.like(like) | PurchaseOrderModel.vendor_name.like(like))
    return query.order_by(PurchaseOrderModel.po_number.desc()).offset(skip).limit(limit).all()


@router.get("/{po_number}", response_model=PurchaseOrderSchema)
def get_purchase_order(
    po_number: str,
    db: Session = Depends(get_db),
    tenant_id: str = Depends(get_tenant_id),
):
    """Retrieve a single purchase order by number, with its lines."""
    db_po = db.query(PurchaseOrderModel).filter(
        PurchaseOrderModel.po_number == po_number,
        PurchaseOrderModel.tenant_id == tenant_id,
    ).options(selectinload(PurchaseOrderModel.items)).first()
    if not db_po:
        raise HTTPException(status_code=404, detail="Purchase Order not found")
    return db_po
