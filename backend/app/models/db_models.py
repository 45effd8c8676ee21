from datetime import datetime
from sqlalchemy import Column, Integer, String, Float, DateTime, JSON
from app.core.database import Base


class PricingPlan(Base):
    __tablename__ = "pricing_plans"
    id = Column(Integer, primary_key=True, index=True)
    corporate_id = Column(String, index=True)
    name = Column(String)
    status = Column(String, default="pending")  # pending/approved/rejected
    tariff = Column(JSON, nullable=True)
    fuel_charge_pct = Column(Float, nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow)
    approved_at = Column(DateTime, nullable=True)
