"""
Models package for the court booking application.
Contains data models for core business objects.
"""

from .company import CompanyProfile, DocumentSettings
from .court import Court
from .promotion import PromotionRule
from .reservation import BookingRequest, Customer, PaymentStatus, Reservation, Slot
from .user import Capability, User

__all__ = [
    'BookingRequest',
    'Capability',
    'CompanyProfile',
    'Court',
    'Customer',
    'DocumentSettings',
    'PaymentStatus',
    'PromotionRule',
    'Reservation',
    'Slot',
    'User',
]
