"""Profile endpoints - user profile, server URL, employee link, data wipe."""

from fastapi import APIRouter, Query, Response, status
from pydantic import BaseModel

from tripbook.api.deps import ErpDep, ProfilesDep, TripsDep
from tripbook.errors import ConfirmationRequired, EmployeeNotFoundError
from tripbook.models.profile import Employee, UserProfile

router = APIRouter(tags=["profile"])


class ServerUrlRequest(BaseModel):
    """Request body for PUT /profile/server-url."""

    url: str | None = None


class ServerUrlResponse(BaseModel):
    """Saved server URL."""

    url: str | None


@router.get("/profile", response_model=UserProfile)
async def get_profile(profiles: ProfilesDep) -> UserProfile:
    """Get the user profile (defaults when none saved)."""
    return await profiles.load_profile()


@router.put("/profile", response_model=UserProfile)
async def save_profile(profile: UserProfile, profiles: ProfilesDep) -> UserProfile:
    """Replace the user profile."""
    await profiles.save_profile(profile)
    return profile


@router.get("/profile/server-url", response_model=ServerUrlResponse)
async def get_server_url(profiles: ProfilesDep) -> ServerUrlResponse:
    """Get the saved ERP server URL."""
    return ServerUrlResponse(url=await profiles.load_server_url())


@router.put("/profile/server-url", response_model=ServerUrlResponse)
async def save_server_url(request: ServerUrlRequest, profiles: ProfilesDep) -> ServerUrlResponse:
    """Save (or clear) the ERP server URL."""
    await profiles.save_server_url(request.url)
    return ServerUrlResponse(url=await profiles.load_server_url())


@router.get("/profile/employee", response_model=Employee | None)
async def get_employee(profiles: ProfilesDep) -> Employee | None:
    """Get the linked employee, if any."""
    return await profiles.load_employee()


@router.post("/profile/employee/{clave}", response_model=Employee)
async def link_employee(clave: str, erp: ErpDep, profiles: ProfilesDep) -> Employee:
    """Verify an employee key against the ERP and link it."""
    employee = await erp.get_employee(clave)
    if employee is None:
        await profiles.save_employee(None)
        raise EmployeeNotFoundError(clave)
    await profiles.save_employee(employee)
    return employee


@router.delete("/profile/employee", status_code=status.HTTP_204_NO_CONTENT)
async def unlink_employee(profiles: ProfilesDep) -> Response:
    """Remove the employee link."""
    await profiles.save_employee(None)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.delete("/data", status_code=status.HTTP_204_NO_CONTENT)
async def wipe_data(
    profiles: ProfilesDep,
    trips: TripsDep,
    confirm: bool = Query(False),
    confirm_again: bool = Query(False),
) -> Response:
    """Delete every trip, the profile and the employee link.

    Irreversible, so it needs both confirm=true and confirm_again=true.
    """
    if not (confirm and confirm_again):
        raise ConfirmationRequired(
            "Se borrarán todos tus viajes, fotos y gastos. "
            "Repite con confirm=true&confirm_again=true."
        )
    await profiles.clear_all_data(trips)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
