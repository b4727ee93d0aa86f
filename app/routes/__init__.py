from app.routes.triggers import triggers_router
from app.routes.webhooks import webhooks_router

__all__ = [
    "triggers_router",
    "webhooks_router",
]
