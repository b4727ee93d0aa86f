from pydantic import BaseModel


class TriggerStatus(BaseModel):
    project: str
    repo: str
    github_server: str
    use_hooks: bool
    state: str
    hook_url: str


class WhitelistRequest(BaseModel):
    user: str


class WhitelistResponse(BaseModel):
    project: str
    user: str
    persisted: bool
