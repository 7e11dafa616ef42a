"""
Rate limiter shared by the routers.
"""
from slowapi import Limiter

from teamauth.features.users.dependencies import get_authorization_header


limiter = Limiter(key_func=get_authorization_header)
