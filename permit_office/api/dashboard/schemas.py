from pydantic import BaseModel


class DashboardStats(BaseModel):
    active_permits: int
    pending_permits: int
    total_invoices: int
    pending_invoices: int
    revenue: int  # paid invoice total, cents
