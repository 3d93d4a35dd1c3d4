from sqlalchemy.orm import declarative_base, mapped_column
from sqlalchemy import Integer, String, Text, DateTime, JSON

Base = declarative_base()

# Lead/deal/activity links are soft references: no foreign keys, no cascade.

class LeadRow(Base):
    __tablename__ = "leads"
    id = mapped_column(Integer, primary_key=True, autoincrement=True)
    company_name = mapped_column(String(255), nullable=False, index=True)
    industry = mapped_column(String(100))
    employee_count = mapped_column(String(50))
    budget_range = mapped_column(String(50))
    timeline = mapped_column(String(50))
    interest_area = mapped_column(String(255))
    notes = mapped_column(Text)
    ai_score = mapped_column(Integer, nullable=False, default=0)
    priority = mapped_column(String(10), nullable=False, default="medium")
    status = mapped_column(String(20), nullable=False, default="new", index=True)
    created_at = mapped_column(DateTime(timezone=True), nullable=False)
    updated_at = mapped_column(DateTime(timezone=True), nullable=False)

class DealRow(Base):
    __tablename__ = "deals"
    id = mapped_column(Integer, primary_key=True, autoincrement=True)
    lead_id = mapped_column(Integer, index=True, nullable=True)
    company_name = mapped_column(String(255), nullable=False)
    value = mapped_column(Integer, nullable=False)  # cents
    stage = mapped_column(String(20), nullable=False, index=True)
    probability = mapped_column(Integer, nullable=False, default=25)
    close_date = mapped_column(DateTime(timezone=True))
    notes = mapped_column(Text)
    last_contact_date = mapped_column(DateTime(timezone=True))
    health_score = mapped_column(Integer, nullable=False, default=50)
    created_at = mapped_column(DateTime(timezone=True), nullable=False)
    updated_at = mapped_column(DateTime(timezone=True), nullable=False)

class ActivityRow(Base):
    __tablename__ = "activities"
    id = mapped_column(Integer, primary_key=True, autoincrement=True)
    deal_id = mapped_column(Integer, index=True, nullable=True)
    lead_id = mapped_column(Integer, index=True, nullable=True)
    type = mapped_column(String(20), nullable=False)
    description = mapped_column(Text, nullable=False)
    outcome = mapped_column(Text)
    next_steps = mapped_column(Text)
    created_at = mapped_column(DateTime(timezone=True), nullable=False)

class CallNoteRow(Base):
    __tablename__ = "call_notes"
    id = mapped_column(Integer, primary_key=True, autoincrement=True)
    deal_id = mapped_column(Integer, index=True, nullable=True)
    lead_id = mapped_column(Integer, index=True, nullable=True)
    call_duration = mapped_column(Integer)
    summary = mapped_column(Text, nullable=False)
    key_points = mapped_column(JSON, default=list)
    objections = mapped_column(JSON, default=list)
    next_steps = mapped_column(Text)
    sentiment = mapped_column(String(10))
    coaching_notes = mapped_column(Text)
    created_at = mapped_column(DateTime(timezone=True), nullable=False)
