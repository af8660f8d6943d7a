# app/models/member.py
import uuid

from sqlalchemy import Column, DateTime, String, func

from app.db.base import Base


def _new_id() -> str:
    return uuid.uuid4().hex


class FamilyMember(Base):
    """
    A person in the family who can take part in calendar events.
    """

    __tablename__ = "family_members"

    id = Column(String(32), primary_key=True, default=_new_id)
    name = Column(String(100), nullable=False)
    color = Column(String(16), nullable=False, default="#3b82f6")

    created_at = Column(DateTime, nullable=False, server_default=func.now())

    def __repr__(self) -> str:
        return f"<FamilyMember id={self.id} name={self.name!r}>"
