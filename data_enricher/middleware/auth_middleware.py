# data_enricher/middleware/auth_middleware.py
import secrets
from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPBasic, HTTPBasicCredentials
from .. import config

# Security instance
security = HTTPBasic()


def get_admin_credentials(credentials: HTTPBasicCredentials = Depends(security)):
    """Validate credentials for the diagnostics routes"""
    # Use secrets.compare_digest for secure comparison
    username_ok = secrets.compare_digest(credentials.username, config.ADMIN_USERNAME)
    password_ok = secrets.compare_digest(credentials.password, config.ADMIN_PASSWORD)

    if not (username_ok and password_ok):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Incorrect username or password",
            headers={"WWW-Authenticate": "Basic"},
        )
    return credentials.username
