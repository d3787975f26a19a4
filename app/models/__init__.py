from app.models.base import Base  # noqa: F401

from app.models.user import User  # noqa: F401
from app.models.parking import Parking  # noqa: F401
from app.models.audit_log import AuditLog  # noqa: F401
