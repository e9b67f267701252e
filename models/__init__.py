from .db import db
from .user import User, Role, user_roles
from .audit_log import AuditLog
from .session import Session
from .resource import Resource
from .booking import Booking
