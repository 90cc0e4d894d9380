from sqlalchemy.orm import Session
from models.app_config import AppConfig
from models.audit_mixin import local_now
from schemas.app_config import AppConfigCreate, AppConfigUpdate

from crud.audit_log import record_change
from utils import sqlalchemy_to_dict

DEFAULT_CONFIGS = [
    {"name": "preferred_cash_accounts", "value": "1101AD,1102AD,1103AD,1104AD"},
    {"name": "nabb_weight_periods", "value": "24"},
    {"name": "dss_llm_conf_threshold", "value": "0.12"},
]


def create_config(db: Session, config: AppConfigCreate, tenant_id: str, user_id: str):
    db_config = AppConfig(name=config.name, value=config.value, tenant_id=tenant_id, created_by=user_id)
    db.add(db_config)
    db.commit()
    db.refresh(db_config)

    record_change(db, 'app_config', db_config.id, 'CREATE', user_id, tenant_id,
                  new_values=sqlalchemy_to_dict(db_config))
    return db_config


def get_config(db: Session, tenant_id: str, name: str = None):
    if name:
        return db.query(AppConfig).filter(AppConfig.name == name, AppConfig.tenant_id == tenant_id).first()
    return db.query(AppConfig).filter(AppConfig.tenant_id == tenant_id).all()


def get_config_value(db: Session, tenant_id: str, name: str, default: str = None) -> str:
    """Tenant value of ``name``, falling back to the shipped default."""
    row = get_config(db, tenant_id, name=name)
    if row is not None and row.value not in (None, ""):
        return row.value
    if default is not None:
        return default
    return next((c["value"] for c in DEFAULT_CONFIGS if c["name"] == name), None)


def update_config_by_name(db: Session, name: str, config: AppConfigUpdate, tenant_id: str, user_id: str):
    db_config = db.query(AppConfig).filter(AppConfig.name == name, AppConfig.tenant_id == tenant_id).first()
    if not db_config:
        return None

    old_values = sqlalchemy_to_dict(db_config)
    for field, value in config.model_dump(exclude_unset=True).items():
        setattr(db_config, field, value)
    db_config.updated_at = local_now()
    db_config.updated_by = user_id
    db.commit()
    db.refresh(db_config)

    record_change(db, 'app_config', db_config.id, 'UPDATE', user_id, tenant_id,
                  old_values=old_values, new_values=sqlalchemy_to_dict(db_config))
    return db_config


def initialize_defaults(db: Session, tenant_id: str, user_id: str):
    """Create the default configurations a tenant is missing. Existing values are kept."""
    existing = {name for (name,) in db.query(AppConfig.name).filter(AppConfig.tenant_id == tenant_id)}
    created = []
    for config_data in DEFAULT_CONFIGS:
        if config_data["name"] not in existing:
            create_config(db, AppConfigCreate(**config_data), tenant_id, user_id=user_id)
            created.append(config_data["name"])
    return created


def defaults_initialized(db: Session, tenant_id: str) -> bool:
    names = {c["name"] for c in DEFAULT_CONFIGS}
    existing = {
        name for (name,) in db.query(AppConfig.name).filter(
            AppConfig.tenant_id == tenant_id, AppConfig.name.in_(names)
        )
    }
    return names.issubset(existing)
