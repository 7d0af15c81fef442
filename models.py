# models.py - SQLAlchemy model for stored lamaran records
from sqlalchemy import Column, String, Text, TIMESTAMP
from sqlalchemy.orm import declarative_base
import datetime
import uuid

Base = declarative_base()


def _new_id():
    return str(uuid.uuid4())


def _utcnow():
    return datetime.datetime.now(datetime.timezone.utc)


class Lamaran(Base):
    __tablename__ = "lamaran"
    id = Column(String(36), primary_key=True, default=_new_id)
    # NOT NULL is the store's own required-field check
    full_name = Column(Text, nullable=False)
    email = Column(Text, nullable=False)
    phone = Column(Text, nullable=False)
    created_at = Column(TIMESTAMP(timezone=True), nullable=False, default=_utcnow)

    def __repr__(self):
        return f"<Lamaran id={self.id}>"
