from permit_office.core.models.park import Park
from permit_office.core.models.permit import Permit
from permit_office.core.models.application import Application
from permit_office.core.models.invoice import Invoice

__all__ = [
    "Application",
    "Invoice",
    "Park",
    "Permit",
]
