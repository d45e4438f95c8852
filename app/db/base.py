# Metadata consumers (Alembic, test setup) import Base from here so every table is registered
from app.db.session import Base  # noqa: F401
from app.models.user import User  # noqa: F401
from app.models.provider import Provider  # noqa: F401
from app.models.provider_application import ProviderApplication  # noqa: F401
from app.models.booking import Booking  # noqa: F401
from app.models.payment import PaymentOrder  # noqa: F401
from app.models.audit_log import AuditLog  # noqa: F401
