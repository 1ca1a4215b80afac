from enum import Enum, IntEnum

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class OrgRole(IntEnum):
    OWNER = 1
    ADMIN = 2
    USER = 3


class ProjectRole(IntEnum):
    PROJECT_OWNER = 4
    PROJECT_ADMIN = 5
    ENGINEER = 6


ROLE_NAMES: dict[int, str] = {
    OrgRole.OWNER: "Owner",
    OrgRole.ADMIN: "Admin",
    OrgRole.USER: "User",
    ProjectRole.PROJECT_OWNER: "Project Owner",
    ProjectRole.PROJECT_ADMIN: "Project Admin",
    ProjectRole.ENGINEER: "Engineer",
}

# Roles that may be handed out through the membership endpoints.
ASSIGNABLE_ORG_ROLES: tuple[OrgRole, ...] = (OrgRole.ADMIN, OrgRole.USER)


class DetailStatus(str, Enum):
    READY = "ready"
    IN_TRANSIT = "in_transit"
    DELAYED = "delayed"


class RequestModel(BaseModel):
    """Base for request bodies: accepts snake_case and camelCase keys."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="ignore",
    )


class MessageResponse(BaseModel):
    message: str
    success: bool = True
