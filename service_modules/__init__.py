"""
Services package - organized service modules.

Each module exposes its service class, a singleton instance and a
get_*_service dependency helper for the routes.
"""
from .base import *
from .gym_service import GymService, gym_service, get_gym_service
from .pass_service import PassService, pass_service, get_pass_service
from .payment_gateway import PaymentGateway, StripePaymentGateway, payment_gateway, get_payment_gateway
from .webhook_service import WebhookService, webhook_service, get_webhook_service
from .validation_service import ValidationService, validation_service, get_validation_service
from .user_service import UserService, user_service, get_user_service

__all__ = [
    'GymService',
    'gym_service',
    'get_gym_service',
    'PassService',
    'pass_service',
    'get_pass_service',
    'PaymentGateway',
    'StripePaymentGateway',
    'payment_gateway',
    'get_payment_gateway',
    'WebhookService',
    'webhook_service',
    'get_webhook_service',
    'ValidationService',
    'validation_service',
    'get_validation_service',
    'UserService',
    'user_service',
    'get_user_service',
]
