"""Pydantic models for REST API requests and responses.

Fields are snake_case in Python and camelCase on the wire.
"""

from datetime import datetime
from typing import List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class ApiModel(BaseModel):
    """Base model: camelCase JSON, snake_case attributes."""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


# ============== Requests ==============

class ProjectPathRequest(ApiModel):
    project_path: str


class WorktreePathRequest(ApiModel):
    worktree_path: str


class DiffRequest(ApiModel):
    worktree_path: str
    file_path: Optional[str] = None
    staged: bool = False


class AddWorktreeRequest(ApiModel):
    project_path: str
    branch_name: str


class RemoveWorktreeRequest(ApiModel):
    project_path: str
    worktree_path: str
    branch_name: str


class CreateShellRequest(ApiModel):
    worktree_path: str


class PairDeviceRequest(ApiModel):
    token: str
    device_name: str = ""


# ============== Responses ==============

class SuccessResponse(ApiModel):
    success: bool = True


class ErrorResponse(ApiModel):
    error: str
    details: Optional[str] = None


class ConfigResponse(ApiModel):
    project_path: str
    version: str


class HealthResponse(ApiModel):
    status: Literal["ok", "degraded"]
    git_available: bool
    git_version: Optional[str] = None
    uptime_seconds: int


class WorktreeData(ApiModel):
    """A worktree from `git worktree list`."""
    path: str
    branch: str
    head: str
    is_main: bool
    is_locked: bool
    is_bare: bool = False
    is_detached: bool = False


class GitStatusData(ApiModel):
    """A changed file from `git status`."""
    path: str
    status: str
    index_state: str
    worktree_state: str
    original_path: Optional[str] = None


class DiffResponse(ApiModel):
    diff: str


class WorktreeAddResponse(ApiModel):
    path: str
    branch: str


class WorktreeRemoveResponse(ApiModel):
    success: bool
    warning: Optional[str] = None


class ShellSessionData(ApiModel):
    id: str
    worktree_path: str
    created_at: datetime
    last_activity: datetime


class DeviceData(ApiModel):
    id: str
    name: str
    paired_at: datetime
    last_seen: datetime


class PairingData(ApiModel):
    token: str
    url: str
    expires_at: datetime


class DirectoryEntryData(ApiModel):
    name: str
    path: str
    is_git_repository: bool = False


class DirectoriesResponse(ApiModel):
    path: str
    directories: List[DirectoryEntryData] = Field(default_factory=list)
    success: bool = True


class PathValidationData(ApiModel):
    valid: bool
    exists: bool = False
    is_directory: bool = False
    readable: bool = False
    is_git_repository: bool = False
    error: Optional[str] = None


class PathValidationResponse(ApiModel):
    path: str
    validation: PathValidationData
    success: bool = True
