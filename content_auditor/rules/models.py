from pydantic import BaseModel, Field

# Capability names follow the content platform: edit_posts opens the audit
# screen and allows bumps, publish_posts allows immediate publication.
DEFAULT_ROLE_CAPABILITIES: dict[str, list[str]] = {
    "administrator": ["edit_posts", "publish_posts"],
    "editor": ["edit_posts", "publish_posts"],
    "author": ["edit_posts", "publish_posts"],
    "contributor": ["edit_posts"],
}


class ProjectRules(BaseModel):
    slug: str = "scheduled-content-auditor"
    rules_version: str = "1"

class SchedulingRules(BaseModel):
    grace_seconds: int = Field(default=300, ge=0)
    default_bump_minutes: int = Field(default=60, ge=1)
    max_scheduled_items: int = Field(default=200, ge=1)
    type_tags: list[str] = Field(default_factory=list)

class QueueRules(BaseModel):
    publish_trigger_hook: str = "publish-trigger"

class TokenRules(BaseModel):
    ttl_minutes: int = Field(default=30, ge=1)
    algorithm: str = "HS256"

class AccessRules(BaseModel):
    role_capabilities: dict[str, list[str]] = Field(
        default_factory=lambda: {k: list(v) for k, v in DEFAULT_ROLE_CAPABILITIES.items()}
    )

class AuditRules(BaseModel):
    project: ProjectRules = Field(default_factory=ProjectRules)
    scheduling: SchedulingRules = Field(default_factory=SchedulingRules)
    queue: QueueRules = Field(default_factory=QueueRules)
    tokens: TokenRules = Field(default_factory=TokenRules)
    access: AccessRules = Field(default_factory=AccessRules)
