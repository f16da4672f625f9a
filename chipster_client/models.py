"""Data models for the documents exchanged with chipster services."""

from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field


class JobState(str, Enum):
    """Job state enumeration."""

    NEW = "NEW"
    WAITING = "WAITING"
    SCHEDULED = "SCHEDULED"
    RUNNING = "RUNNING"
    COMPLETED = "COMPLETED"
    FAILED = "FAILED"
    FAILED_USER_ERROR = "FAILED_USER_ERROR"
    ERROR = "ERROR"
    CANCELLED = "CANCELLED"
    TIMEOUT = "TIMEOUT"
    EXPIRED_WAITING = "EXPIRED_WAITING"


class ChipsterModel(BaseModel):
    """Base class for service documents.

    Fields use the camelCase names of the JSON documents as aliases. Unknown
    fields are kept so that a document can be read, modified and written back
    without losing anything.
    """

    model_config = ConfigDict(populate_by_name=True, extra="allow")

    def to_dict(self) -> Dict[str, Any]:
        """Serialize to a JSON compatible dict using the service field names."""
        return self.model_dump(by_alias=True, exclude_none=True, mode="json")


class Service(ChipsterModel):
    """Service locator entry."""

    role: str = Field(..., description="Service role, e.g. 'session-db'")
    service_id: Optional[str] = Field(None, alias="serviceId", description="Service instance id")
    uri: Optional[str] = Field(None, description="Internal address")
    public_uri: Optional[str] = Field(None, alias="publicUri", description="Public address")
    admin_uri: Optional[str] = Field(None, alias="adminUri", description="Admin address")


class Session(ChipsterModel):
    """Analysis session."""

    session_id: Optional[str] = Field(None, alias="sessionId", description="Session id")
    name: Optional[str] = Field(None, description="Session name")
    notes: Optional[str] = Field(None, description="Free text notes")
    created: Optional[datetime] = Field(None, description="Creation time")
    accessed: Optional[datetime] = Field(None, description="Last access time")
    state: Optional[str] = Field(None, description="Session state")


class Dataset(ChipsterModel):
    """Dataset in a session."""

    dataset_id: Optional[str] = Field(None, alias="datasetId", description="Dataset id")
    name: Optional[str] = Field(None, description="Dataset name")
    notes: Optional[str] = Field(None, description="Free text notes")
    source_job: Optional[str] = Field(None, alias="sourceJob", description="Id of the producing job")
    x: Optional[int] = Field(None, description="Workflow view x coordinate")
    y: Optional[int] = Field(None, description="Workflow view y coordinate")
    created: Optional[datetime] = Field(None, description="Creation time")
    file: Optional[Dict[str, Any]] = Field(None, description="File details from the file broker")
    metadata_files: List[Dict[str, Any]] = Field(
        default_factory=list, alias="metadataFiles", description="Attached metadata files"
    )


class Job(ChipsterModel):
    """Tool run in a session."""

    job_id: Optional[str] = Field(None, alias="jobId", description="Job id")
    tool_id: Optional[str] = Field(None, alias="toolId", description="Tool id")
    tool_name: Optional[str] = Field(None, alias="toolName", description="Tool display name")
    tool_category: Optional[str] = Field(None, alias="toolCategory", description="Tool category")
    module: Optional[str] = Field(None, description="Tool module")
    state: Optional[JobState] = Field(None, description="Job state")
    state_detail: Optional[str] = Field(None, alias="stateDetail", description="State details")
    screen_output: Optional[str] = Field(None, alias="screenOutput", description="Tool output")
    created: Optional[datetime] = Field(None, description="Creation time")
    start_time: Optional[datetime] = Field(None, alias="startTime", description="Start time")
    end_time: Optional[datetime] = Field(None, alias="endTime", description="End time")
    parameters: List[Dict[str, Any]] = Field(default_factory=list, description="Tool parameters")
    inputs: List[Dict[str, Any]] = Field(default_factory=list, description="Input datasets")


class Rule(ChipsterModel):
    """Access rule of a session."""

    rule_id: Optional[str] = Field(None, alias="ruleId", description="Rule id")
    username: str = Field(..., description="User the rule grants access to")
    read_write: bool = Field(False, alias="readWrite", description="Whether writing is allowed")
    shared_by: Optional[str] = Field(None, alias="sharedBy", description="User who shared")
    created: Optional[datetime] = Field(None, description="Creation time")
    session: Optional[Dict[str, Any]] = Field(None, description="Session reference")


class Category(ChipsterModel):
    """Tool category of a toolbox module."""

    name: str = Field(..., description="Category name")
    color: Optional[str] = Field(None, description="Display color")
    hidden: bool = Field(False, description="Whether the category is hidden")
    tools: List[Dict[str, Any]] = Field(default_factory=list, description="Tools in the category")


class Module(ChipsterModel):
    """Toolbox module."""

    name: str = Field(..., description="Module name")
    module_id: Optional[str] = Field(None, alias="moduleId", description="Module id")
    categories: List[Category] = Field(default_factory=list, description="Tool categories")


class ToolName(ChipsterModel):
    """Identification of a tool."""

    id: str = Field(..., description="Tool id")
    display_name: Optional[str] = Field(None, alias="displayName", description="Display name")


class Tool(ChipsterModel):
    """Tool description (SADL)."""

    name: ToolName = Field(..., description="Tool name")
    description: Optional[str] = Field(None, description="Tool description")
    inputs: List[Dict[str, Any]] = Field(default_factory=list, description="Tool inputs")
    outputs: List[Dict[str, Any]] = Field(default_factory=list, description="Tool outputs")
    parameters: List[Dict[str, Any]] = Field(default_factory=list, description="Tool parameters")
