# models.py

from sqlalchemy import Column, DateTime, Float, String, Text

from database import Base


class JobRecord(Base):
    """Row form of a GenerationJob for the SQL job store."""

    __tablename__ = "generation_jobs"

    id = Column(String, primary_key=True, index=True)
    status = Column(String, default="queued")
    progress = Column(Float, default=0.0)
    prompt = Column(Text, default="")
    result_url = Column(String, nullable=True)
    error_message = Column(Text, nullable=True)
    created_at = Column(DateTime(timezone=True), index=True)
