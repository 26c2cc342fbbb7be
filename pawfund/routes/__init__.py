from .core_routes import core
from .auth_routes import auth_bp
from .adoption_routes import adoptions
from .adoption_request_routes import adoption_requests
from .case_routes import cases
from .case_update_routes import case_updates
from .doctor_routes import doctors
from .donor_routes import donor
from .emergency_routes import emergency
from .welfare_routes import welfare

__all__ = [
    "core",
    "auth_bp",
    "adoptions",
    "adoption_requests",
    "cases",
    "case_updates",
    "doctors",
    "donor",
    "emergency",
    "welfare",
]
