from duty_rotation.auth.dependencies import get_current_user, get_rotation_service
from duty_rotation.auth.security import create_access_token, verify_token

__all__ = ["get_current_user", "get_rotation_service", "create_access_token", "verify_token"]
