from .user import PasswordResetToken, User
from .task import Task, STATUS_COMPLETED, STATUS_IN_PROGRESS, STATUS_PENDING
from .family import Family, FamilyMember, FamilyTask

# Export all models for easy importing
__all__ = [
    "User",
    "PasswordResetToken",
    "Task",
    "Family",
    "FamilyMember",
    "FamilyTask",
    "STATUS_PENDING",
    "STATUS_IN_PROGRESS",
    "STATUS_COMPLETED",
]
