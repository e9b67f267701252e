from .health import health_bp
from .auth import auth_bp
from .resources import resource_bp
from .booking import booking_bp
