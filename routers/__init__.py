from .obligations import router as obligations_router
from .settlements import router as settlements_router
from .migration import router as migration_router
from .payments import router as payments_router
from .recurring import router as recurring_router

__all__ = [
     "obligations_router",
     "settlements_router",
     "migration_router",
     "payments_router",
     "recurring_router",
]
