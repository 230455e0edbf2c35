from typing import List

from pydantic import BaseModel

from app.schemas.appointment import Appointment


class DashboardStats(BaseModel):
    total_appointments: int = 0
    total_customers: int = 0
    gallery_images: int = 0
    total_services: int = 0
    today_appointments: int = 0
    pending_appointments: int = 0


class DashboardSnapshot(BaseModel):
    stats: DashboardStats
    recent_appointments: List[Appointment]
