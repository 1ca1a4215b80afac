# SQLModel definitions: imported here to ensure metadata is populated for Alembic.
from .base import UUIDMixin, TimestampMixin  # noqa: F401
from .user import User  # noqa: F401
from .session import AuthSession  # noqa: F401
from .organization import Organization  # noqa: F401
from .user_org import UserOrg, UserOrgRole  # noqa: F401
from .invitation import Invitation  # noqa: F401
from .project import Project  # noqa: F401
from .project_role import ProjectUserRole  # noqa: F401
from .project_detail import ProjectDetail  # noqa: F401
from .audit_log import AuditLogEntry  # noqa: F401
