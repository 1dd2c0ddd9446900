from .admin import router as admin_router
from .attendance import router as attendance_router
from .chat import router as chat_router
from .finance import router as finance_router
from .notices import router as notices_router
from .schedules import router as schedules_router
from .tasks import router as tasks_router
from .users import router as users_router

ROUTERS = (
    users_router,
    admin_router,
    schedules_router,
    attendance_router,
    tasks_router,
    finance_router,
    notices_router,
    chat_router,
)
