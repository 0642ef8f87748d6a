from sqlalchemy import Boolean, Column, String

from app.platform.db.base import BaseModel


class PendingUser(BaseModel):
    """A signup in progress. Promoted to a User by the complete-account step."""

    __tablename__ = "pending_users"
    email = Column(String(255), unique=True, nullable=False, index=True)
    first_name = Column(String(100), nullable=True)
    last_name = Column(String(100), nullable=True)
    is_verified = Column(Boolean, default=False, nullable=False)

    @property
    def profile_complete(self) -> bool:
        return bool(self.first_name and self.last_name)

    def __repr__(self):
        return f"<PendingUser(email={self.email}, is_verified={self.is_verified})>"
