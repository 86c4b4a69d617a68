from sqlalchemy import Column, Integer, String, Numeric, ForeignKey
from sqlalchemy.orm import relationship
from backoffice.database import Base
import enum

class ComponentType(str, enum.Enum):
    EARNING = "earning"
    DEDUCTION = "deduction"

class PayrollComponent(Base):
    __tablename__ = "payroll_components"

    id = Column(Integer, primary_key=True, index=True)
    payroll_id = Column(Integer, ForeignKey("payrolls.id"), nullable=False, index=True)
    component_type = Column(String, nullable=False)  # Store enum value as string
    name = Column(String, nullable=False)
    amount = Column(Numeric(12, 2), nullable=False)
    description = Column(String, nullable=True)

    payroll = relationship("Payroll", back_populates="components")
