import logging
import os
from collections.abc import Callable
from functools import lru_cache
from pathlib import Path
from typing import Annotated

from fastapi import Depends, HTTPException, Request, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from content_auditor.adapters.action_tokens import SignedActionTokens
from content_auditor.adapters.clock import SystemClock
from content_auditor.adapters.queue_file import JsonFileQueue
from content_auditor.adapters.sqlite_items import SQLiteItemRepo
from content_auditor.api.auth_utils import decode_access_token
from content_auditor.domain.entities import Operator
from content_auditor.domain.policy import AuditPolicy, policy_from_rules
from content_auditor.rules.loader import load_rules
from content_auditor.rules.models import AuditRules

logger = logging.getLogger(__name__)


# --- Settings ---
class Settings:
    def __init__(self) -> None:
        self.base_dir = Path(os.getcwd())
        self.data_dir = Path(os.environ.get("AUDITOR_DATA_DIR", "./data"))
        self.db_path = str(self.data_dir / "auditor.db")
        self.queue_path = Path(
            os.environ.get("AUDITOR_QUEUE_PATH", str(self.data_dir / "queue.json"))
        )
        self.rules_path = Path(
            os.environ.get("AUDITOR_RULES_PATH", str(self.base_dir / "rules.yaml"))
        )
        self.secret_key = os.environ.get("AUDITOR_SECRET_KEY", "dev-secret-unsafe")


@lru_cache
def get_settings() -> Settings:
    return Settings()


# --- Rules ---
@lru_cache
def get_rules() -> AuditRules:
    return load_rules(get_settings().rules_path)


def get_policy() -> AuditPolicy:
    return policy_from_rules(get_rules())


# --- Adapters ---
def get_clock() -> SystemClock:
    return SystemClock()


@lru_cache
def get_item_repo() -> SQLiteItemRepo:
    settings = get_settings()
    settings.data_dir.mkdir(parents=True, exist_ok=True)
    repo = SQLiteItemRepo(settings.db_path)
    repo.ensure_schema()
    logger.info("Item store at %s", settings.db_path)
    return repo


def get_queue() -> JsonFileQueue:
    return JsonFileQueue(get_settings().queue_path)


# One issuer per process so consumed tokens are remembered
@lru_cache
def get_action_tokens() -> SignedActionTokens:
    settings = get_settings()
    rules = get_rules()
    if settings.secret_key == "dev-secret-unsafe":
        logger.warning("AUDITOR_SECRET_KEY not set; using development secret")
    return SignedActionTokens(
        secret_key=settings.secret_key,
        ttl_minutes=rules.tokens.ttl_minutes,
        algorithm=rules.tokens.algorithm,
    )


# --- Auth ---
bearer_scheme = HTTPBearer(auto_error=False)


def get_current_operator(
    request: Request,
    credentials: Annotated[HTTPAuthorizationCredentials | None, Depends(bearer_scheme)],
    settings: Settings = Depends(get_settings),
) -> Operator:
    # Cookie first (HttpOnly), then the Authorization header
    token = None
    cookie_token = request.cookies.get("access_token")
    if cookie_token and cookie_token.startswith("Bearer "):
        token = cookie_token.split(" ", 1)[1]
    elif credentials is not None:
        token = credentials.credentials

    if not token:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Not authenticated",
            headers={"WWW-Authenticate": "Bearer"},
        )

    payload = decode_access_token(token, settings.secret_key)
    if not payload:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid token",
            headers={"WWW-Authenticate": "Bearer"},
        )

    operator_id = payload.get("sub")
    roles = payload.get("roles", [])
    if (
        not isinstance(operator_id, str)
        or not isinstance(roles, list)
        or not all(isinstance(r, str) for r in roles)
    ):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid token payload",
        )

    return Operator(id=operator_id, roles=roles)


def require_capability(capability: str) -> Callable[..., Operator]:
    """Dependency factory: the current operator, if a role grants the capability."""

    def checker(
        operator: Operator = Depends(get_current_operator),
        policy: AuditPolicy = Depends(get_policy),
    ) -> Operator:
        if not policy.allows(operator.roles, capability):
            logger.warning("Operator %s lacks %s", operator.id, capability)
            raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Access denied")
        return operator

    return checker
