"""Route modules."""

from .auth import router as auth_router
from .bootcamps import router as bootcamps_router
from .courses import router as courses_router
from .reviews import router as reviews_router
from .uploads import router as uploads_router
from .users import router as users_router

__all__ = ["auth_router", "bootcamps_router", "courses_router", "reviews_router", "uploads_router", "users_router"]
