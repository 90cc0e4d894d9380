from sqlalchemy import Column, DateTime, String
from datetime import datetime
import pytz

# All business timestamps are recorded in Indonesian western time.
LOCAL_TZ = pytz.timezone('Asia/Jakarta')


def local_now():
    return datetime.now(LOCAL_TZ)


class TimestampMixin:
    """Mixin that provides created/updated timestamps and user info."""
    # DateTime(timezone=True) ensures the timezone info is persisted in the database.
    created_at = Column(DateTime(timezone=True), default=local_now)
    updated_at = Column(DateTime(timezone=True), onupdate=local_now)
    created_by = Column(String, nullable=True)
    updated_by = Column(String, nullable=True)
