from .records import Record
from .auth import User, SessionToken, ROLES

__all__ = [
    'Record',
    'User', 'SessionToken', 'ROLES',
]
