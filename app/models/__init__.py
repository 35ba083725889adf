# SQLModel database models

from app.models.admin import AdminIdentity, AdminAddress, AdminSession
from app.models.code import VerificationCode
from app.models.log_event import LogEvent, LogLevel
from app.models.tenant import Tenant, TenantPlan, ProvisioningStatus

__all__ = [
    "AdminIdentity",
    "AdminAddress",
    "AdminSession",
    "VerificationCode",
    "LogEvent",
    "LogLevel",
    "Tenant",
    "TenantPlan",
    "ProvisioningStatus",
]
