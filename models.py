from sqlalchemy import Column, Integer, String, DateTime
from sqlalchemy.orm import declarative_base
from sqlalchemy.sql import func

Base = declarative_base()

class Order(Base):
    __tablename__ = "orders"

    id = Column(Integer, primary_key=True)
    product_sku = Column(String, nullable=False)
    quantity = Column(Integer, default=1)
    subtotal_cents = Column(Integer, nullable=False)
    shipping_cents = Column(Integer, default=0)
    total_cents = Column(Integer, nullable=False)
    donation_cents = Column(Integer, default=0)
    currency = Column(String, default="aud")
    stripe_session_id = Column(String, unique=True)
    status = Column(String, default="pending")  # pending, paid, failed
    created_at = Column(DateTime(timezone=True), server_default=func.now())
