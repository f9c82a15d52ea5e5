from sqlalchemy import Column, String, Integer, DateTime
from sqlalchemy.sql import func
from recruitchat.database import Base
import uuid


class Client(Base):
    """Client company that owns job postings."""

    __tablename__ = "hr_clients"

    id = Column(String, primary_key=True, default=lambda: str(uuid.uuid4()))
    client_name = Column(String(500), nullable=False)
    status = Column(String(20), nullable=False, default="active", index=True)
    created_at = Column(DateTime, server_default=func.now())


class ClientContact(Base):
    """Person at a client company."""

    __tablename__ = "hr_client_contacts"

    id = Column(String, primary_key=True, default=lambda: str(uuid.uuid4()))
    client_id = Column(String, nullable=True, index=True)
    name = Column(String(500), nullable=False)
    email = Column(String(500), nullable=True)
    phone = Column(String(50), nullable=True)
    designation = Column(String(200), nullable=True)
    created_at = Column(DateTime, server_default=func.now())


class JobStatus(Base):
    """Catalog of valid job statuses, ordered for display."""

    __tablename__ = "job_statuses"

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String(100), nullable=False, unique=True)
    display_order = Column(Integer, nullable=False, default=0)
