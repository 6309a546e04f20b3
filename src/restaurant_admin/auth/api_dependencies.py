"""FastAPI dependencies for staff authentication."""

from typing import Annotated

from fastapi import Header, HTTPException

from restaurant_admin.auth.staff_auth import StaffAuthenticator, StaffProfile


def get_staff_from_header(
    x_api_key: Annotated[str | None, Header()] = None,
    authenticator: StaffAuthenticator | None = None,
) -> StaffProfile:
    """Resolve the staff member calling the API from the X-API-Key header.

    Args:
        x_api_key: API key from X-API-Key header (injected by FastAPI)
        authenticator: StaffAuthenticator holding the issued keys

    Returns:
        StaffProfile of the caller

    Raises:
        HTTPException: 401 if the API key is missing or unknown
    """
    if not x_api_key:
        raise HTTPException(status_code=401, detail="Missing API key")

    if authenticator is None:
        raise HTTPException(status_code=401, detail="Authentication is not configured")

    staff = authenticator.authenticate(x_api_key)
    if staff is None:
        raise HTTPException(status_code=401, detail="Invalid API key")

    return staff
