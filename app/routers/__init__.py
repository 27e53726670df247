from .auth import router as auth_router
from .course import router as course_router
from .dashboard import router as dashboard_router
from .module import course_modules_router
from .module import router as module_router
from .user import router as user_router

routes = [
    auth_router,
    course_router,
    course_modules_router,
    module_router,
    user_router,
    dashboard_router,
]
