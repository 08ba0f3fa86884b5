# home_value_service/models/__init__.py

from .home_value import HomeValueRequest, Assignment, Claimed, Unclaimed
from .message import HomeValueMessage
