# app/models/event.py
from sqlalchemy import (
    Boolean,
    Column,
    Date,
    DateTime,
    ForeignKey,
    Integer,
    String,
    Text,
    UniqueConstraint,
    func,
)
from sqlalchemy.orm import relationship

from app.db.base import Base
from app.models.member import _new_id


class Event(Base):
    """
    A calendar event. When `recurrence` is set the row is the anchor of a
    recurring series; occurrences are never stored.
    """

    __tablename__ = "events"

    id = Column(String(32), primary_key=True, default=_new_id)

    title = Column(String(100), nullable=False)
    description = Column(Text, nullable=True)
    location = Column(String(200), nullable=True)
    category = Column(String(32), nullable=False, default="OTHER")

    start_time = Column(DateTime, nullable=False, index=True)
    end_time = Column(DateTime, nullable=True)
    all_day = Column(Boolean, nullable=False, default=False)

    created_at = Column(DateTime, nullable=False, server_default=func.now())
    updated_at = Column(
        DateTime,
        nullable=False,
        server_default=func.now(),
        onupdate=func.now(),
    )

    participants = relationship(
        "EventParticipant",
        back_populates="event",
        cascade="all, delete-orphan",
        order_by="EventParticipant.id",
        lazy="selectin",
    )
    recurrence = relationship(
        "EventRecurrence",
        back_populates="event",
        cascade="all, delete-orphan",
        uselist=False,
        lazy="selectin",
    )

    def __repr__(self) -> str:
        return (
            f"<Event id={self.id} title={self.title!r} "
            f"start={self.start_time} recurring={self.recurrence is not None}>"
        )


class EventParticipant(Base):
    """
    Association between an event and a family member attending it.
    """

    __tablename__ = "event_participants"

    id = Column(Integer, primary_key=True, autoincrement=True)

    event_id = Column(
        String(32),
        ForeignKey("events.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    member_id = Column(
        String(32),
        ForeignKey("family_members.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )

    event = relationship("Event", back_populates="participants")
    member = relationship("FamilyMember", lazy="selectin")

    __table_args__ = (
        UniqueConstraint(
            "event_id",
            "member_id",
            name="uq_event_participants_event_member",
        ),
    )


class EventRecurrence(Base):
    """
    Flat storage of a recurrence rule. Converted to and from the tagged
    rule schema in `app.services.event_mapper`.
    """

    __tablename__ = "event_recurrences"

    id = Column(Integer, primary_key=True, autoincrement=True)

    event_id = Column(
        String(32),
        ForeignKey("events.id", ondelete="CASCADE"),
        nullable=False,
        unique=True,
    )

    frequency = Column(String(16), nullable=False)
    interval = Column(Integer, nullable=False, default=1)

    # Comma-separated weekday codes, e.g. "MO,WE"
    days_of_week = Column(String(32), nullable=True)
    day_of_month = Column(Integer, nullable=True)

    end_date = Column(Date, nullable=True)
    count = Column(Integer, nullable=True)

    event = relationship("Event", back_populates="recurrence")

    def __repr__(self) -> str:
        return (
            f"<EventRecurrence event_id={self.event_id} "
            f"frequency={self.frequency} interval={self.interval}>"
        )
