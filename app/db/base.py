# app/db/base.py
from sqlalchemy.orm import DeclarativeBase


class Base(DeclarativeBase):
    """
    Base class for all SQLAlchemy ORM models in the Family Calendar service.

    Models register themselves on `Base.metadata` when `app.db.session`
    imports them.
    """
    pass
