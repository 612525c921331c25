from models.base import Base
from models.user import User
from models.job import Job
from models.service_request import ServiceRequest
from models.damage_report import DamageReport
from models.task import Task
from models.event import Event

__all__ = [
    "Base",
    "User",
    "Job",
    "ServiceRequest",
    "DamageReport",
    "Task",
    "Event",
]
