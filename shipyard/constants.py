"""Global constants for shipyard"""

from enum import Enum

APP_NAME = "shipyard"
LOG_FORMAT = "%(message)s"

# Configuration
DEFAULT_CONFIG_FILE = ".shipyard.yaml"
DEFAULT_STATE_FILE = ".shipyard/deployments.json"

# Remote filesystem layout
DEFAULT_DEPLOY_ROOT = "/var/www/shipyard"
RELEASES_DIR = "releases"
SHARED_DIR = "shared"
CURRENT_LINK_NAME = "current"
SECRETS_FILE = ".env"
REMOTE_TMP_DIR = "/tmp"

# Release retention
DEFAULT_RELEASES_TO_KEEP = 5

# Ownership applied to writable paths of stateful applications
WEB_SERVER_USER = "www-data"
WRITABLE_MODE = "775"

# Remote command timeouts (seconds)
PROBE_TIMEOUT = 15
TASK_TIMEOUT = 60
DEFAULT_COMMAND_TIMEOUT = 300
CLONE_TIMEOUT = 300
SCRIPT_TIMEOUT = 600

# Exit code reported for commands killed by a timeout (same as coreutils `timeout`)
TIMEOUT_EXIT_CODE = 124

# Deployment log line timestamp
LOG_TIMESTAMP_FORMAT = "%Y-%m-%d %H:%M:%S"


class ApplicationStatus(Enum):
    IDLE = "idle"
    DEPLOYING = "deploying"
    ACTIVE = "active"
    FAILED = "failed"


class DeploymentStatus(Enum):
    PENDING = "pending"
    RUNNING = "running"
    SUCCESS = "success"
    FAILED = "failed"


class DeploymentType(Enum):
    DEPLOY = "deploy"
    ROLLBACK = "rollback"


class DeploymentStrategy(Enum):
    ATOMIC = "atomic"
    IN_PLACE = "in_place"


class GitProviderType(Enum):
    GITHUB = "github"
    GITLAB = "gitlab"
    BITBUCKET = "bitbucket"


# Error codes
class ErrorCode:
    CONFIG_FORMAT_ERROR = "SY001"
    TRANSPORT_FAILED = "SY004"
    PRECONDITION_FAILED = "SY011"
    RELEASE_NOT_FOUND = "SY012"
    NO_PREVIOUS_DEPLOYMENT = "SY013"
    INVALID_STATE = "SY017"
    COMMAND_FAILED = "SY020"
    CLONE_FAILED = "SY021"
    ACTIVATION_FAILED = "SY022"
    CANCELLED = "SY030"


# Environment variables
ENV_CONFIG_PATH = "SHIPYARD_CONFIG"

# Display constants
EMOJI_SUCCESS = "✓"
EMOJI_ERROR = "✗"
EMOJI_WARNING = "⚠"

# Interactive prompts
PROMPT_CONFIRM_DEPLOY = "Deploy {application} ({branch}) to {server}?"
PROMPT_CONFIRM_ROLLBACK = "Roll back {application} to {target}?"
