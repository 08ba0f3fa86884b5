# home_value_service/crud/__init__.py

from .crud_home_value import home_value
from .crud_message import message
