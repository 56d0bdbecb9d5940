from .guard import Requirement, check_requirements, guard
from .models import Failure, Skipped

__all__ = ["Failure", "Requirement", "Skipped", "check_requirements", "guard"]
