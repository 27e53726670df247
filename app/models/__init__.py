"""
Models package initialization
Import all models and setup relationships
"""

from .course import Course
from .module import Module

# Import and setup relationships
from .relations import setup_relationships
from .user import User
from .user_course import UserCourse
from .user_module_progress import UserModuleProgress

# Setup all relationships after models are imported
setup_relationships()

# Make models available at package level
__all__ = [
    "Course",
    "Module",
    "User",
    "UserCourse",
    "UserModuleProgress",
]
