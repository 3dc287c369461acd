import logging
from datetime import datetime, timezone
from typing import Iterator, Optional

from fastapi import Depends, FastAPI, HTTPException, Request
from fastapi.concurrency import run_in_threadpool
from fastapi.responses import JSONResponse, PlainTextResponse

import webhook
from config import Settings, settings
from core.rsr.engine import check_compliance
from core.rsr.models import ComplianceReport, PolicyPack
from github_client import GitHubClient

VERSION = "0.1.0"

# -------------------------------------------------------------------
# Logging
# -------------------------------------------------------------------

logging.basicConfig(
    level=settings.LOG_LEVEL,
    format="%(asctime)s %(levelname)s %(name)s - %(message)s",
)
logger = logging.getLogger("rhodibot")

logger.info("Webhook signature verification: %s", "ENABLED" if settings.webhook_verification_enabled else "DISABLED")
logger.info("GitHub token: %s", "SET" if settings.GITHUB_TOKEN else "NOT SET")

# -------------------------------------------------------------------
# FastAPI App
# -------------------------------------------------------------------

app = FastAPI(
    title="Rhodibot",
    version=VERSION,
    description="RSR (Rhodium Standard Repository) compliance bot.",
)

# -------------------------------------------------------------------
# Dependencies
# -------------------------------------------------------------------

def get_settings() -> Settings:
    return settings


def get_client(s: Settings = Depends(get_settings)) -> Iterator[GitHubClient]:
    client = GitHubClient.from_settings(s)
    try:
        yield client
    finally:
        client.close()


def _policy_pack(value: Optional[str]) -> Optional[PolicyPack]:
    if value is None:
        return None
    try:
        return PolicyPack(value.strip().lower())
    except ValueError:
        allowed = ", ".join(p.value for p in PolicyPack)
        raise HTTPException(status_code=422, detail=f"Unknown policy pack {value!r} (expected one of: {allowed})")

# -------------------------------------------------------------------
# Startup
# -------------------------------------------------------------------

@app.on_event("startup")
def on_startup():
    logger.info("Rhodibot v%s starting up (api=%s, default policy=%s)",
                VERSION, settings.GITHUB_API_URL, settings.DEFAULT_POLICY_PACK.value)

# -------------------------------------------------------------------
# Routes
# -------------------------------------------------------------------

@app.get("/")
def root():
    return {"status": "healthy", "version": VERSION, "name": "rhodibot"}


@app.get("/health")
def health(s: Settings = Depends(get_settings)):
    return {
        "status": "healthy",
        "version": VERSION,
        "name": "rhodibot",
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "services": {
            "api": "operational",
            "github_token": "configured" if s.GITHUB_TOKEN else "not_configured",
            "github_app": "configured" if s.github_app_configured else "not_configured",
            "webhook_verification": "enabled" if s.webhook_verification_enabled else "disabled",
        },
    }


@app.post("/webhook")
async def webhook_handler(
    request: Request,
    s: Settings = Depends(get_settings),
    client: GitHubClient = Depends(get_client),
):
    body = await request.body()

    if s.GITHUB_WEBHOOK_SECRET:
        signature = request.headers.get("x-hub-signature-256")
        if not signature:
            logger.warning("Missing webhook signature")
            return PlainTextResponse("Missing signature", status_code=401)
        if not webhook.verify_signature(s.GITHUB_WEBHOOK_SECRET, body, signature):
            logger.warning("Invalid webhook signature")
            return PlainTextResponse("Invalid signature", status_code=401)

    event_type = request.headers.get("x-github-event", "unknown")
    logger.info("Received webhook event: %s", event_type)

    if event_type == "ping":
        return PlainTextResponse("OK")

    try:
        await run_in_threadpool(webhook.dispatch, event_type, s, client, body)
    except webhook.WebhookPayloadError as e:
        logger.warning("Bad webhook payload: %s", e)
        return PlainTextResponse("Bad payload", status_code=400)
    except Exception as e:
        logger.exception("Error processing webhook: %s", e)
        return PlainTextResponse("Error", status_code=500)

    return PlainTextResponse("OK")


@app.get("/api/check/{owner}/{repo}", response_model=ComplianceReport)
def check_repository(
    owner: str,
    repo: str,
    policy: Optional[str] = None,
    s: Settings = Depends(get_settings),
    client: GitHubClient = Depends(get_client),
):
    pack = _policy_pack(policy)
    logger.info("Checking repository: %s/%s", owner, repo)
    try:
        return check_compliance(
            owner,
            repo,
            client,
            policy_pack=pack,
            default_policy=s.DEFAULT_POLICY_PACK,
            max_workers=s.MAX_CHECK_WORKERS,
        )
    except Exception as e:
        logger.exception("Error checking repository %s/%s: %s", owner, repo, e)
        raise HTTPException(status_code=500, detail="Compliance check failed")


@app.exception_handler(HTTPException)
async def http_exception_handler(request: Request, exc: HTTPException):
    return JSONResponse(
        status_code=exc.status_code,
        content={"error": exc.detail, "status_code": exc.status_code, "path": str(request.url)},
    )


@app.exception_handler(Exception)
async def general_exception_handler(request: Request, exc: Exception):
    logger.exception("Unhandled exception: %s", exc)
    return JSONResponse(status_code=500, content={"error": "Internal server error"})
