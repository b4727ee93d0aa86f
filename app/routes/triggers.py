import structlog
from fastapi import APIRouter, Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from app.config import settings
from app.schemas.triggers import TriggerStatus, WhitelistRequest, WhitelistResponse
from app.services import trigger_registry
from app.services.coordinator import Coordinator
from app.services.trigger_store import get_trigger

logger = structlog.get_logger(__name__)
triggers_router = APIRouter(prefix="/api", tags=["triggers"])
api_security = HTTPBearer()


async def verify_token(
    credentials: HTTPAuthorizationCredentials = Depends(api_security),
):
    if credentials.credentials != settings.admin_token:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid API token",
        )
    return credentials.credentials


def get_active_coordinator(project: str) -> Coordinator:
    coordinator = trigger_registry.get(project)
    if coordinator is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"No active trigger for project {project}",
        )
    return coordinator


@triggers_router.get(
    "/triggers",
    response_model=list[TriggerStatus],
    status_code=status.HTTP_200_OK,
)
async def list_triggers(token: str = Depends(verify_token)):
    return [coordinator.status() for coordinator in trigger_registry.coordinators]


@triggers_router.post(
    "/triggers/{project}/check",
    status_code=status.HTTP_202_ACCEPTED,
)
async def check_trigger(project: str, token: str = Depends(verify_token)):
    coordinator = get_active_coordinator(project)
    repository = coordinator.repository
    if repository is None:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail=f"Trigger for project {project} is stopped",
        )

    try:
        await repository.check_now()
    except Exception as e:
        logger.error("Manual repository check failed", project=project, error=str(e))
        raise HTTPException(
            status_code=status.HTTP_502_BAD_GATEWAY,
            detail=f"Repository check failed: {e}",
        )

    return {"message": "Repository checked", "project": project}


@triggers_router.post(
    "/triggers/{project}/whitelist",
    response_model=WhitelistResponse,
    status_code=status.HTTP_200_OK,
)
async def whitelist_user(
    project: str,
    data: WhitelistRequest,
    token: str = Depends(verify_token),
):
    user = data.user.strip()
    if not user:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="User must not be empty",
        )

    coordinator = get_active_coordinator(project)
    persisted = await coordinator.grant_whitelist(user)
    return WhitelistResponse(project=project, user=user, persisted=persisted)


@triggers_router.post(
    "/triggers/{project}/reload",
    response_model=TriggerStatus,
    status_code=status.HTTP_200_OK,
)
async def reload_trigger(project: str, token: str = Depends(verify_token)):
    trigger = await get_trigger(project)
    if trigger is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"No trigger stored for project {project}",
        )

    coordinator = await trigger_registry.start(trigger)
    if coordinator is None:
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_CONTENT,
            detail=f"Trigger for project {project} could not be started",
        )
    return coordinator.status()
