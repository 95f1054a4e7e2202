from .subscription_use_case import SubscriptionUseCase

__all__ = ["SubscriptionUseCase"]
