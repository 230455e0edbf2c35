from enum import Enum
from typing import Optional

from pydantic import BaseModel


class AppointmentStatus(str, Enum):
    pending = "pending"
    confirmed = "confirmed"
    completed = "completed"
    cancelled = "cancelled"


class Appointment(BaseModel):
    id: str
    customer_name: str
    customer_phone: Optional[str] = None
    customer_email: Optional[str] = None
    service_name: str
    appointment_date: str  # YYYY-MM-DD
    appointment_time: str  # HH:MM:SS
    status: AppointmentStatus = AppointmentStatus.pending
    notes: Optional[str] = None
    created_at: Optional[str] = None


class AppointmentInsert(BaseModel):
    """Row written by the public booking form; status is left to the store default."""

    customer_name: str
    customer_phone: Optional[str] = None
    customer_email: str
    service_name: str
    appointment_date: str
    appointment_time: str
