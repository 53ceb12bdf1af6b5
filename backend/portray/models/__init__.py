from .tenancy import Organization, Port, PortAdminContact
from .auth import User, UserSession, UserAuditLog
from .terminals import SubscriptionType, Terminal, ActivationLog
from .communications import Notification
from .navigation import Menu, MenuType

__all__ = [
    'Organization', 'Port', 'PortAdminContact',
    'User', 'UserSession', 'UserAuditLog',
    'SubscriptionType', 'Terminal', 'ActivationLog',
    'Notification',
    'Menu', 'MenuType',
]
