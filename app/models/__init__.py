from app.models.application import (
    ApplicationApcd,
    Application,
    Attachment,
    ContactPerson,
    InstallationExperience,
    OemProfile,
    Payment,
    StaffDetail,
)
from app.models.application_status_history import ApplicationStatusHistory

__all__ = [
    "Application",
    "ApplicationApcd",
    "ApplicationStatusHistory",
    "Attachment",
    "ContactPerson",
    "InstallationExperience",
    "OemProfile",
    "Payment",
    "StaffDetail",
]
