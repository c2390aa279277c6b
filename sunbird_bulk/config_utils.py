# config_utils.py - Configuration for sunbird-bulk
"""
sunbird-bulk configuration utilities with YAML file support.

Configuration Resolution Order (highest to lowest priority):
1. Environment variables (SUNBIRD_BASE_URL, SUNBIRD_API_KEY, etc.)
   - a .env file in the working directory is loaded first, without
     overriding variables already set in the process
2. sunbird.yaml in the working directory
3. ~/.sunbird_bulk/config.yaml (global defaults)
4. Built-in defaults

Usage:
    from sunbird_bulk.config_utils import get_config

    config = get_config()
    print(config.base_url)
    print(config.learner_course_csv)
"""

import os
from pathlib import Path
from dataclasses import dataclass, field, fields
from typing import Optional, Dict, Any, List, Tuple

import yaml
from dotenv import load_dotenv

from sunbird_bulk.errors import ConfigurationError, missing_credentials_error


@dataclass
class BulkConfig:
    """Complete sunbird-bulk configuration"""
    # Remote API
    base_url: str = "https://dev-fmps.sunbirded.org"
    api_key: Optional[str] = None
    username: Optional[str] = None
    password: Optional[str] = None
    client_id: str = "direct-grant"
    client_secret: Optional[str] = None
    grant_type: str = "password"
    request_timeout: float = 60.0

    # Content defaults stamped on everything we create
    channel_id: Optional[str] = None
    created_by: Optional[str] = None
    organisation: List[str] = field(default_factory=lambda: ["FMPS Org"])
    framework: str = "FMPS"
    mime_type: str = "application/vnd.ekstep.ecml-archive"
    creator: str = "Content Creator"

    # Pacing between entities
    wait_interval: float = 1.0

    # Paths (relative values resolve against the working directory)
    learner_course_csv: Path = Path("data/learner_course.csv")
    user_learner_csv: Path = Path("data/user_learner.csv")
    question_csv: Path = Path("data/questions.csv")
    quiz_csv: Path = Path("data/assessment_create.csv")
    reports_dir: Path = Path("reports")
    data_dir: Path = Path("data")
    env_file: Path = Path(".env")

    verbose: int = 0

    # Extra settings from config file
    extra: Dict[str, Any] = field(default_factory=dict)

    # Track where values came from (for debugging)
    _sources: Dict[str, str] = field(default_factory=dict)

    def source_of(self, name: str) -> str:
        return self._sources.get(name, "default")

    @property
    def timeout(self) -> Tuple[float, float]:
        """(connect, read) timeout for requests"""
        return (min(10.0, self.request_timeout), self.request_timeout)

    def require_credentials(self) -> None:
        """Raise ConfigurationError unless everything needed to log in is set."""
        required = {
            "SUNBIRD_API_KEY": self.api_key,
            "SUNBIRD_USERNAME": self.username,
            "SUNBIRD_PASSWORD": self.password,
            "SUNBIRD_CLIENT_SECRET": self.client_secret,
            "SUNBIRD_CHANNEL_ID": self.channel_id,
        }
        missing = [name for name, value in required.items() if not value]
        if missing:
            raise missing_credentials_error(missing)


# Environment variable -> config attribute
ENV_VARS = {
    "SUNBIRD_BASE_URL": "base_url",
    "SUNBIRD_API_KEY": "api_key",
    "SUNBIRD_USERNAME": "username",
    "SUNBIRD_PASSWORD": "password",
    "SUNBIRD_CLIENT_ID": "client_id",
    "SUNBIRD_CLIENT_SECRET": "client_secret",
    "SUNBIRD_GRANT_TYPE": "grant_type",
    "SUNBIRD_REQUEST_TIMEOUT": "request_timeout",
    "SUNBIRD_CHANNEL_ID": "channel_id",
    "SUNBIRD_CREATED_BY": "created_by",
    "SUNBIRD_ORGANISATION": "organisation",
    "SUNBIRD_FRAMEWORK": "framework",
    "SUNBIRD_MIME_TYPE": "mime_type",
    "SUNBIRD_CREATOR": "creator",
    "SUNBIRD_WAIT_INTERVAL": "wait_interval",
    "LEARNER_COURSE_CSV": "learner_course_csv",
    "USER_LEARNER_CSV": "user_learner_csv",
    "QUESTION_CSV_PATH": "question_csv",
    "QUIZ_CSV_PATH": "quiz_csv",
    "SUNBIRD_REPORTS_DIR": "reports_dir",
    "SUNBIRD_DATA_DIR": "data_dir",
    "SUNBIRD_VERBOSE": "verbose",
}

PATH_FIELDS = {
    "learner_course_csv", "user_learner_csv", "question_csv", "quiz_csv",
    "reports_dir", "data_dir", "env_file",
}
FLOAT_FIELDS = {"request_timeout", "wait_interval"}
INT_FIELDS = {"verbose"}


class ConfigLoader:
    """Load configuration from multiple sources"""

    def __init__(self, work_dir: Optional[Path] = None):
        self.work_dir = Path(work_dir) if work_dir else Path.cwd()
        self.config = BulkConfig()

    def load(self) -> BulkConfig:
        """Load configuration from all sources in priority order"""
        # Load in reverse priority (lowest first, higher overwrites)
        self._load_global_config()
        self._load_yaml_config()
        self._load_dotenv()
        self._load_env_vars()
        self._resolve_paths()
        return self.config

    def _load_global_config(self):
        """Load ~/.sunbird_bulk/config.yaml if it exists"""
        global_config = Path.home() / ".sunbird_bulk" / "config.yaml"
        if global_config.exists():
            self._load_yaml_file(global_config, "global")

    def _load_yaml_config(self):
        """Load sunbird.yaml from the working directory"""
        yaml_path = self.work_dir / "sunbird.yaml"
        if yaml_path.exists():
            self._load_yaml_file(yaml_path, "sunbird.yaml")

    def _load_yaml_file(self, path: Path, source_name: str):
        """Load settings from a YAML file"""
        try:
            data = yaml.safe_load(path.read_text(encoding="utf-8")) or {}
        except yaml.YAMLError as e:
            raise ConfigurationError(
                message=f"Failed to parse {path.name}",
                suggestion="Fix the YAML syntax or remove the file",
                context={"path": str(path)},
                cause=e,
            )
        if not isinstance(data, dict):
            raise ConfigurationError(
                message=f"{path.name} must be a mapping at top level",
                context={"path": str(path)},
            )

        known = {f.name for f in fields(BulkConfig) if not f.name.startswith("_")} - {"extra"}
        for key, value in data.items():
            if key in known:
                self._set(key, value, source_name)
            else:
                self.config.extra[key] = value

    def _load_dotenv(self):
        """Make .env values visible as environment variables (real env wins)"""
        env_file = self.config.env_file
        if not env_file.is_absolute():
            env_file = self.work_dir / env_file
        if env_file.exists():
            load_dotenv(env_file, override=False)

    def _load_env_vars(self):
        """Load from environment variables (highest priority)"""
        for env_name, attr in ENV_VARS.items():
            value = os.environ.get(env_name)
            if value:
                self._set(attr, value, f"env:{env_name}")

    def _set(self, attr: str, value: Any, source: str):
        try:
            if attr in PATH_FIELDS:
                value = Path(str(value)).expanduser()
            elif attr in FLOAT_FIELDS:
                value = float(value)
            elif attr in INT_FIELDS:
                value = int(value)
            elif attr == "organisation":
                if isinstance(value, str):
                    value = [part.strip() for part in value.split(",") if part.strip()]
                else:
                    value = [str(v) for v in value]
            elif attr == "base_url":
                value = str(value).rstrip("/")
        except (TypeError, ValueError) as e:
            raise ConfigurationError(
                message=f"Invalid value for {attr}: {value!r}",
                context={"source": source},
                cause=e,
            )
        setattr(self.config, attr, value)
        self.config._sources[attr] = source

    def _resolve_paths(self):
        for attr in PATH_FIELDS:
            value = getattr(self.config, attr)
            if not value.is_absolute():
                setattr(self.config, attr, self.work_dir / value)


# ============================================================================
# Public API
# ============================================================================

def get_config(work_dir: Optional[Path] = None) -> BulkConfig:
    """
    Get complete sunbird-bulk configuration.

    Args:
        work_dir: Directory holding sunbird.yaml / .env (defaults to cwd)

    Returns:
        BulkConfig with all settings resolved
    """
    loader = ConfigLoader(work_dir)
    return loader.load()


def create_config_template() -> str:
    """Generate a sunbird.yaml template."""
    return '''# sunbird-bulk configuration
# Environment variables (SUNBIRD_*) override anything set here.

base_url: https://dev-fmps.sunbirded.org
channel_id: REPLACE_WITH_CHANNEL_ID
created_by: REPLACE_WITH_CREATOR_USER_ID
organisation:
  - FMPS Org
framework: FMPS
creator: Content Creator

# Seconds to wait after each learner profile / quiz / user
wait_interval: 1.0

learner_course_csv: data/learner_course.csv
user_learner_csv: data/user_learner.csv
question_csv: data/questions.csv
quiz_csv: data/assessment_create.csv
reports_dir: reports

# Keep secrets out of this file; put them in .env:
#   SUNBIRD_API_KEY, SUNBIRD_USERNAME, SUNBIRD_PASSWORD, SUNBIRD_CLIENT_SECRET
'''
