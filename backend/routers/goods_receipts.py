from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session, selectinload
import logging

from database import get_db
from models.goods_receipts import GoodsReceipt as GoodsReceiptModel, GoodsReceiptItem as GoodsReceiptItemModel
from models.purchase_order_items import PurchaseOrderItem as PurchaseOrderItemModel
from models.purchase_orders import PurchaseOrder as PurchaseOrderModel
from schemas.purchase_orders import GoodsReceipt as GoodsReceiptSchema, GoodsReceiptCreate
from utils.tenancy import get_tenant_id, get_user_id

router = APIRouter(prefix="/goods-receipts", tags=["Goods Receipts"])
logger = logging.getLogger("goods_receipts")


@router.post("/", response_model=GoodsReceiptSchema, status_code=status.HTTP_201_CREATED)
def create_goods_receipt(
    receipt: GoodsReceiptCreate,
    db: Session = Depends(get_db),
    tenant_id: str = Depends(get_tenant_id),
    user_id: str = Depends(get_user_id),
):
    """Record materials received against a purchase order."""
    if not receipt.items:
        raise HTTPException(status_code=400, detail="Goods receipt must contain at least one item.")
    exists = db.query(GoodsReceiptModel.id).filter(
        GoodsReceiptModel.receipt_number == receipt.receipt_number,
        GoodsReceiptModel.tenant_id == tenant_id,
    ).first()
    if exists:
        raise HTTPException(status_code=400, detail=f"Goods receipt {receipt.receipt_number} already exists")

    db_receipt = GoodsReceiptModel(
        receipt_number=receipt.receipt_number,
        po_number=receipt.po_number,
        vendor_name=receipt.vendor_name,
        posting_date=receipt.posting_date,
        created_by=user_id,
        tenant_id=tenant_id,
    )
    db.add(db_receipt)
    db.flush()

    for item in receipt.items:
        total_price = item.total_price if item.total_price is not None else item.price * item.quantity
        db.add(GoodsReceiptItemModel(
            goods_receipt_id=db_receipt.id,
            material_code=item.material_code,
            material=item.material,
            quantity=item.quantity,
            unit=item.unit,
            price=item.price,
            total_price=total_price,
            invoiced=False,
            tenant_id=tenant_id,
        ))
        if receipt.po_number:
            # Keep the running received quantity/value on the PO line
            po_item = db.query(PurchaseOrderItemModel).join(PurchaseOrderModel).filter(
                PurchaseOrderModel.po_number == receipt.po_number,
                PurchaseOrderModel.tenant_id == tenant_id,
                PurchaseOrderItemModel.material_code == item.material_code,
            ).first()
            if po_item:
                po_item.received_qty = (po_item.received_qty or 0) + item.quantity
                po_item.received_value = (po_item.received_value or 0) + total_price

    db.commit()
    db.refresh(db_receipt)
    logger.info(f"Goods receipt {db_receipt.receipt_number} created for tenant {tenant_id}")
    return db_receipt


@router.get("/{receipt_number}", response_model=GoodsReceiptSchema)
def get_goods_receipt(
    receipt_number: str,
    db: Session = Depends(get_db),
    tenant_id: str = Depends(get_tenant_id),
):
    db_receipt = db.query(GoodsReceiptModel).filter(
        GoodsReceiptModel.receipt_number == receipt_number,
        GoodsReceiptModel.tenant_id == tenant_id,
    ).options(selectinload(GoodsReceiptModel.items)).first()
    if not db_receipt:
        raise HTTPException(status_code=404, detail="Goods receipt not found")
    return db_receipt
