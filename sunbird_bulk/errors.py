# errors.py
"""
Custom exception classes with readable error messages for sunbird-bulk

All exceptions include:
- Clear error description
- Actionable suggestions
- Relevant context

Per-row failures are turned into short report reasons with failure_reason();
the long formatted text is only for errors that stop a run.
"""
from pathlib import Path
from typing import Optional, Dict, Any

import requests


class SunbirdBulkError(Exception):
    """Base exception for all sunbird-bulk errors"""

    def __init__(
        self,
        message: str,
        suggestion: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
        cause: Optional[Exception] = None
    ):
        self.message = message
        self.suggestion = suggestion
        self.context = context or {}
        self.cause = cause
        super().__init__(self.format_message())

    def format_message(self) -> str:
        """Format error with all details"""
        lines = [
            "",
            "=" * 70,
            f"❌ {self.__class__.__name__}",
            "=" * 70,
            "",
            self.message,
        ]

        if self.context:
            lines.append("")
            lines.append("Context:")
            for key, value in self.context.items():
                lines.append(f"  {key}: {value}")

        if self.suggestion:
            lines.append("")
            lines.append("💡 Suggestion:")
            lines.append(f"  {self.suggestion}")

        if self.cause:
            lines.append("")
            lines.append(f"Caused by: {type(self.cause).__name__}: {self.cause}")

        lines.append("")
        lines.append("=" * 70)
        lines.append("")

        return "\n".join(lines)


class ConfigurationError(SunbirdBulkError):
    """Configuration is missing or invalid"""
    pass


class PrerequisiteError(SunbirdBulkError):
    """A previous phase has not produced what this phase needs"""
    pass


class AuthenticationError(SunbirdBulkError):
    """Token exchange with the auth service failed"""
    pass


class InputError(SunbirdBulkError):
    """A CSV row is missing a required value"""
    pass


class RemoteAPIError(SunbirdBulkError):
    """Error communicating with the Sunbird API"""

    def __init__(
        self,
        message: str,
        status_code: Optional[int] = None,
        errmsg: Optional[str] = None,
        endpoint: Optional[str] = None,
        cause: Optional[Exception] = None,
    ):
        self.status_code = status_code
        self.errmsg = errmsg
        self.endpoint = endpoint
        context: Dict[str, Any] = {}
        if endpoint:
            context["endpoint"] = endpoint
        if status_code is not None:
            context["status_code"] = status_code
        if errmsg:
            context["errmsg"] = errmsg
        super().__init__(message, context=context, cause=cause)


class RemoteNotFoundError(RemoteAPIError):
    """A search returned no match"""
    pass


class DependencyError(SunbirdBulkError):
    """A dependency code could not be resolved to a remote identifier"""

    def __init__(self, code: str, kind: str, cause: Exception):
        self.code = code
        self.kind = kind
        super().__init__(
            f"Failed processing {kind} {code}: {failure_reason(cause)}",
            context={"code": code},
            cause=cause,
        )


# ============================================================================
# Report reasons
# ============================================================================

def failure_reason(exc: BaseException) -> str:
    """
    Short, single-line reason for a status report.

    Preference order: the structured remote message (params.errmsg), the
    plain message of our own errors, then whatever the exception says.
    """
    if isinstance(exc, RemoteAPIError) and exc.errmsg:
        return exc.errmsg
    if isinstance(exc, SunbirdBulkError):
        return exc.message
    if isinstance(exc, requests.HTTPError) and exc.response is not None:
        errmsg = extract_errmsg(exc.response)
        if errmsg:
            return errmsg
    text = str(exc).strip()
    return text or type(exc).__name__


def extract_errmsg(response: requests.Response) -> Optional[str]:
    """Pull params.errmsg out of an API error body, if there is one."""
    try:
        data = response.json()
    except ValueError:
        return None
    if not isinstance(data, dict):
        return None
    params = data.get("params") or {}
    if isinstance(params, dict) and params.get("errmsg"):
        return str(params["errmsg"])
    return None


# ============================================================================
# Specific error factory functions
# ============================================================================

def missing_credentials_error(missing: list[str]) -> ConfigurationError:
    """Create error for missing API credentials"""
    return ConfigurationError(
        message="Sunbird API credentials not configured",
        suggestion=(
            "Set the missing values as environment variables (or in .env):\n" +
            "\n".join(f"  export {name}=..." for name in missing) +
            "\n\nOr add them to sunbird.yaml in the working directory"
        ),
        context={
            "missing": missing,
            "checked_locations": [
                "environment variables",
                ".env",
                "sunbird.yaml",
                "~/.sunbird_bulk/config.yaml",
            ],
        }
    )


def missing_input_file_error(path: Path, setting: str) -> PrerequisiteError:
    """Create error when an input CSV is not where config says it is"""
    return PrerequisiteError(
        message=f"Input file not found: {path}",
        suggestion=(
            f"Create the file or point {setting} at the right location:\n"
            f"  export {setting}=./data/your_file.csv"
        ),
        context={
            "path": str(path),
            "setting": setting,
        }
    )


def missing_mappings_error(missing: list[str], cause: Optional[Exception] = None) -> PrerequisiteError:
    """Create error when the profile phase mappings are absent or unreadable"""
    return PrerequisiteError(
        message=(
            "Required mappings " + ", ".join(missing) +
            " are not set or could not be parsed"
        ),
        suggestion=(
            "Run the learner profile creation phase first:\n"
            "  sunbird-bulk profiles\n\n"
            "It writes the mappings into .env for the enrollment phase"
        ),
        context={"missing": missing},
        cause=cause,
    )


def missing_profile_report_error(report_path: Path) -> PrerequisiteError:
    """Create error when the learner profile status report is absent"""
    return PrerequisiteError(
        message=f"{report_path.name} not found",
        suggestion=(
            "Run the learner profile creation phase first:\n"
            "  sunbird-bulk profiles"
        ),
        context={"expected_path": str(report_path)},
    )
