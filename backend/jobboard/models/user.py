from sqlalchemy import Column, String, DateTime
import uuid
import enum

from jobboard.database import Base
from jobboard.database_types import GUID, enum_column, utcnow


class UserRole(str, enum.Enum):
    """User role for role-based access control (RBAC)."""
    GUEST = "guest"  # Signed up but has not picked a role yet
    TALENT = "talent"  # Job seeker
    EMPLOYER = "employer"  # Company owner / hiring manager
    RECRUITER = "recruiter"  # Hires on behalf of companies
    ADMIN = "admin"  # Moderates jobs and companies


# Roles a guest may pick for themselves via select-role
SELECTABLE_ROLES = (UserRole.TALENT, UserRole.EMPLOYER, UserRole.RECRUITER)

# Roles that can post jobs and manage companies
HIRING_ROLES = (UserRole.EMPLOYER, UserRole.RECRUITER, UserRole.ADMIN)


class User(Base):
    __tablename__ = "users"

    id = Column(GUID, primary_key=True, default=uuid.uuid4)
    email = Column(String(255), unique=True, nullable=False, index=True)
    username = Column(String(30), unique=True, nullable=True, index=True)
    password_hash = Column(String(255), nullable=True)  # Null for OIDC-only accounts

    role = Column(
        enum_column(UserRole, "user_role"),
        nullable=False,
        default=UserRole.GUEST,
        index=True
    )

    # Profile
    first_name = Column(String(100), nullable=True)
    last_name = Column(String(100), nullable=True)
    profile_image_url = Column(String(500), nullable=True)
    resume_path = Column(String(500), nullable=True)  # /objects/... path of the latest resume

    last_active_at = Column(DateTime, nullable=True)

    # Timestamps
    created_at = Column(DateTime, default=utcnow, nullable=False)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow, nullable=False)

    def is_admin(self) -> bool:
        """Check if user has admin role."""
        return self.role == UserRole.ADMIN

    def has_role(self, *roles: UserRole) -> bool:
        return self.role in roles

    def can_hire(self) -> bool:
        """Employers, recruiters and admins can post jobs and manage companies."""
        return self.role in HIRING_ROLES

    @property
    def display_name(self) -> str:
        name = " ".join(p for p in (self.first_name, self.last_name) if p)
        return name or self.username or self.email
