"""
Access control for stored objects (resumes, logos, avatars).

The policy lives in the object's own metadata under ACL_POLICY_METADATA_KEY
as JSON: {"owner": <user id>, "visibility": "public"|"private",
"aclRules": [{"group": {"type": "company_members", "id": <company id>},
"permission": "read"|"write"}]}.
"""
import enum
import json
import logging
from typing import List, Literal, Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field
from sqlalchemy.ext.asyncio import AsyncSession

from jobboard.models.user import User
from jobboard.services.companies import is_company_member

logger = logging.getLogger(__name__)

ACL_POLICY_METADATA_KEY = "custom:aclPolicy"


class ObjectAccessGroupType(str, enum.Enum):
    COMPANY_MEMBERS = "company_members"


class ObjectPermission(str, enum.Enum):
    READ = "read"
    WRITE = "write"


class ObjectAccessGroup(BaseModel):
    type: ObjectAccessGroupType
    id: str


class ObjectAclRule(BaseModel):
    group: ObjectAccessGroup
    permission: ObjectPermission


class ObjectAclPolicy(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    owner: str
    visibility: Literal["public", "private"]
    acl_rules: List[ObjectAclRule] = Field(default_factory=list, alias="aclRules")

    def to_metadata_value(self) -> str:
        return json.dumps(self.model_dump(mode="json", by_alias=True))

    @classmethod
    def from_metadata(cls, metadata: Optional[dict]) -> Optional["ObjectAclPolicy"]:
        raw = (metadata or {}).get(ACL_POLICY_METADATA_KEY)
        if not raw:
            return None
        return cls.model_validate(json.loads(raw))

    def grants(self, group: ObjectAccessGroup, permission: ObjectPermission) -> bool:
        return any(
            r.group == group and is_permission_allowed(permission, r.permission) for r in self.acl_rules
        )


def is_permission_allowed(requested: ObjectPermission, granted: ObjectPermission) -> bool:
    """Write implies read."""
    if requested == ObjectPermission.READ:
        return granted in (ObjectPermission.READ, ObjectPermission.WRITE)
    return granted == ObjectPermission.WRITE


async def is_group_member(db: AsyncSession, user: User, group: ObjectAccessGroup) -> bool:
    if group.type == ObjectAccessGroupType.COMPANY_MEMBERS:
        if user.is_admin():
            return True
        try:
            company_id = UUID(group.id)
        except ValueError:
            return False
        return await is_company_member(db, user.id, company_id)
    raise ValueError(f"Unknown access group type: {group.type}")


async def can_access_object(
    db: AsyncSession,
    user: Optional[User],
    policy: Optional[ObjectAclPolicy],
    requested: ObjectPermission,
) -> bool:
    """
    Objects without a policy are never served. Public objects are readable
    by anyone; otherwise the owner and members of a granted group with a
    sufficient permission get access.
    """
    if policy is None:
        return False

    if policy.visibility == "public" and requested == ObjectPermission.READ:
        return True

    if user is None:
        return False

    if policy.owner == str(user.id):
        return True

    for rule in policy.acl_rules:
        if await is_group_member(db, user, rule.group) and is_permission_allowed(requested, rule.permission):
            return True

    return False
