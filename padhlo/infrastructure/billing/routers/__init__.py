from .subscription import router as subscription_router
from .usage import router as usage_router

__all__ = ["subscription_router", "usage_router"]
