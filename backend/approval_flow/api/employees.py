from __future__ import annotations

from fastapi import APIRouter

from approval_flow.api.deps import AuthDep, DirectoryDep
from approval_flow.exceptions import NotFoundError
from approval_flow.schemas.employee import EmployeeProfile

employees_router = APIRouter(prefix="/employees", tags=["employees"])


@employees_router.get("/me", response_model=EmployeeProfile)
async def get_my_profile(
    auth: AuthDep,
    directory: DirectoryDep,
) -> EmployeeProfile:
    """Return the caller's directory profile."""
    profile = await directory.get_profile(auth.email)
    if profile is None:
        raise NotFoundError("Employee not found")
    return profile
