# hospitalms/routers/__init__.py
from . import appointments
from . import auth
from . import departments
from . import doctors
from . import health
from . import users

__all__ = ["appointments", "auth", "departments", "doctors", "health", "users"]
