"""Chipster client library.

REST client, configuration reader and logging helpers shared by the chipster
services and command line tools.
"""

from chipster_client.config import Config
from chipster_client.exceptions import (
    AuthenticationError,
    BadRequestError,
    ChipsterError,
    ConfigurationError,
    ConflictError,
    ConnectionError,
    ForbiddenError,
    HttpError,
    InternalServerError,
    NotFoundError,
    TimeoutError,
)
from chipster_client.logger import add_log_file, get_logger, set_level
from chipster_client.models import (
    Category,
    Dataset,
    Job,
    JobState,
    Module,
    Rule,
    Service,
    Session,
    Tool,
    ToolName,
)
from chipster_client.rest_client import RestClient

__version__ = "0.1.0"
__all__ = [
    "AuthenticationError",
    "BadRequestError",
    "Category",
    "ChipsterError",
    "Config",
    "ConfigurationError",
    "ConflictError",
    "ConnectionError",
    "Dataset",
    "ForbiddenError",
    "HttpError",
    "InternalServerError",
    "Job",
    "JobState",
    "Module",
    "NotFoundError",
    "RestClient",
    "Rule",
    "Service",
    "Session",
    "TimeoutError",
    "Tool",
    "ToolName",
    "add_log_file",
    "get_logger",
    "set_level",
]
