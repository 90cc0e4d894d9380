from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session
from typing import List, Optional
import logging

from database import get_db
from schemas.app_config import AppConfigCreate, AppConfigUpdate, AppConfigOut
from crud import app_config as crud_app_config
from utils.tenancy import (
    allowed_tenants,
    database_code,
    get_tenant_id,
    get_user_id,
    tenant_company,
    tenant_label,
)

router = APIRouter()
logger = logging.getLogger("app_config")


@router.post("/configurations/", response_model=AppConfigOut, status_code=status.HTTP_201_CREATED)
def create_config(config: AppConfigCreate, db: Session = Depends(get_db), tenant_id: str = Depends(get_tenant_id),
                  user_id: str = Depends(get_user_id)):
    if crud_app_config.get_config(db, tenant_id, name=config.name):
        raise HTTPException(status_code=400, detail=f"Configuration '{config.name}' already exists")
    return crud_app_config.create_config(db, config, tenant_id, user_id=user_id)


@router.get("/configurations/", response_model=List[AppConfigOut])
def get_configs(name: Optional[str] = None, db: Session = Depends(get_db), tenant_id: str = Depends(get_tenant_id)):
    configs = crud_app_config.get_config(db, tenant_id, name=name)
    # Always return a list, even if empty
    if name:
        return [configs] if configs else []
    return configs or []


@router.patch("/configurations/{name}/", response_model=AppConfigOut)
def update_config(name: str, config: AppConfigUpdate, db: Session = Depends(get_db),
                  tenant_id: str = Depends(get_tenant_id), user_id: str = Depends(get_user_id)):
    updated = crud_app_config.update_config_by_name(db, name, config, tenant_id, user_id)
    if not updated:
        raise HTTPException(status_code=404, detail="Configuration not found")
    logger.info(f"Configuration '{name}' updated for tenant {tenant_id} by {user_id}")
    return updated


@router.get("/tenants/", tags=["Tenants"])
def list_tenants():
    return [
        {"database": t, "label": tenant_label(t), "company": tenant_company(t)}
        for t in allowed_tenants()
    ]


@router.get("/tenants/current", tags=["Tenants"])
def current_tenant(tenant_id: str = Depends(get_tenant_id)):
    return {
        "database": tenant_id,
        "label": tenant_label(tenant_id),
        "database_code": database_code(tenant_id),
        "company": tenant_company(tenant_id),
    }


@router.get("/tenants/configs-initialized", tags=["Tenants"])
def are_tenant_configurations_initialized(
    db: Session = Depends(get_db),
    tenant_id: str = Depends(get_tenant_id),
):
    """
    Checks if the default application configurations are initialized for a tenant.
    """
    return {"configs_initialized": crud_app_config.defaults_initialized(db, tenant_id)}


@router.post("/tenants/initialize-configs", status_code=status.HTTP_201_CREATED, tags=["Tenants"])
def initialize_tenant_configurations(
    db: Session = Depends(get_db),
    tenant_id: str = Depends(get_tenant_id),
    user_id: str = Depends(get_user_id),
):
    """
    Initializes a tenant with the default set of application configurations.
    This is idempotent; it will not overwrite existing configurations for the tenant.
    """
    created = crud_app_config.initialize_defaults(db, tenant_id, user_id)
    if not created:
        return {"message": f"All default configurations already exist for tenant '{tenant_id}'.", "new_configs": []}

    logger.info(f"Initialized default configs for tenant '{tenant_id}' by {user_id}. New configs: {created}")
    return {"message": f"Successfully initialized default configurations for tenant '{tenant_id}'.", "new_configs": created}
