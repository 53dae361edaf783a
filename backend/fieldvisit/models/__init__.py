from .auth import User
from .reference import Company, Branch, Recipient
from .visits import Visit, VisitCash, VisitInventoryItem, VisitNote

__all__ = [
    'User',
    'Company', 'Branch', 'Recipient',
    'Visit', 'VisitCash', 'VisitInventoryItem', 'VisitNote',
]
