from sqlalchemy import Column, Integer, String, Boolean, DateTime, func
from worklog.database import Base

class User(Base):
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True)
    email = Column(String, unique=True, index=True, nullable=False)
    name = Column(String, nullable=True)
    hashed_password = Column(String, nullable=False)
    is_active = Column(Boolean, default=True, nullable=False)
    role = Column(String, default="user", nullable=False)  # user, admin
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    last_report_edit_at = Column(DateTime(timezone=True), nullable=True)
