import hashlib
import hmac

import structlog
from fastapi import APIRouter, Header, HTTPException, Request, status

from app.config import settings
from app.services import trigger_registry
from app.services.coordinator import HOOK_PATH

logger = structlog.get_logger(__name__)

webhooks_router = APIRouter(prefix=HOOK_PATH, tags=["webhooks"])

HANDLED_EVENTS = ("pull_request", "issue_comment")


def verify_signature(body: bytes, signature: str | None) -> None:
    if not signature:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Missing X-Hub-Signature-256 header.",
        )

    secret = settings.github_webhook_secret.encode()
    expected_signature = f"sha256={hmac.new(secret, body, hashlib.sha256).hexdigest()}"

    if not hmac.compare_digest(expected_signature, signature):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid signature.",
        )


@webhooks_router.post(
    "/",
    status_code=status.HTTP_202_ACCEPTED,
)
async def receive_github_webhook(
    request: Request,
    x_github_event: str | None = Header(None, description="GitHub event name"),
    x_github_delivery: str | None = Header(None, description="GitHub delivery GUID"),
    x_hub_signature_256: str | None = Header(
        None, description="GitHub webhook signature"
    ),
):
    if not x_github_event:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Missing X-GitHub-Event header.",
        )

    if settings.github_webhook_secret:
        verify_signature(await request.body(), x_hub_signature_256)

    try:
        payload = await request.json()
    except Exception:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST, detail="Invalid JSON payload."
        )

    if x_github_event == "ping":
        return {"message": "pong"}

    if x_github_event not in HANDLED_EVENTS:
        return {"message": "Webhook received but ignored due to event type."}

    try:
        repo_name = payload["repository"]["full_name"]
    except (KeyError, TypeError) as e:
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_CONTENT,
            detail=f"Missing expected key in GitHub payload: {e}",
        )

    coordinator = trigger_registry.find_by_repository(repo_name)
    repository = coordinator.repository if coordinator else None
    if repository is None:
        logger.info(
            "Webhook for repository without active trigger",
            repo=repo_name,
            event=x_github_event,
            delivery=x_github_delivery,
        )
        return {"message": "Webhook received but no trigger is active."}

    if x_github_event == "pull_request":
        await repository.on_pull_request(payload)
    else:
        await repository.on_issue_comment(payload)

    return {
        "message": "Webhook received",
        "event": x_github_event,
        "project": coordinator.project_name,
    }
