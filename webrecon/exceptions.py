"""Custom exceptions for webrecon.

Provides structured error handling with categorized exceptions.
Run-fatal errors are raised while a session is being prepared; unit-scoped
errors never leave the pipeline stage that produced them.
"""

from typing import Optional, Dict, Any


class WebReconException(Exception):
    """Base exception for all webrecon errors.

    Provides structured error format with:
    - error_code: Machine-readable error identifier
    - message: Human-readable error description
    - details: Optional additional context
    """

    error_code: str = "WEBRECON_ERROR"
    fatal: bool = True

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def to_dict(self) -> Dict[str, Any]:
        """Return structured error dict."""
        response = {
            "error": True,
            "error_code": self.error_code,
            "message": self.message,
        }
        if self.details:
            response["details"] = self.details
        return response


# ============ Configuration Errors (run-fatal) ============


class ConfigurationError(WebReconException):
    """Configuration issue."""

    error_code = "CONFIGURATION_ERROR"

    def __init__(self, setting: str, message: str):
        super().__init__(f"Configuration error for {setting}: {message}", details={"setting": setting})


class InvalidPortSpecError(ConfigurationError):
    """Port selection is neither a known list name nor a valid port list."""

    error_code = "INVALID_PORT_SPEC"

    def __init__(self, spec: str, reason: str = "invalid port range given"):
        super().__init__("ports", f"{reason}: {spec}")
        self.details["spec"] = spec


class OutputDirectoryError(ConfigurationError):
    """Output destination is missing or not a directory."""

    error_code = "INVALID_OUTPUT_DIRECTORY"

    def __init__(self, path: str, reason: str):
        super().__init__("out_dir", f"{reason}: {path}")
        self.details["path"] = path


class RulesetError(WebReconException):
    """Technology fingerprint ruleset could not be read or decoded."""

    error_code = "RULESET_ERROR"

    def __init__(self, path: str, reason: str):
        super().__init__(f"Can't load technology fingerprints from {path}: {reason}", details={"path": path})


class BrowserNotFoundError(WebReconException):
    """No usable Chrome/Chromium binary for screenshots."""

    error_code = "BROWSER_NOT_FOUND"

    def __init__(self, searched: Optional[list] = None):
        super().__init__(
            "Unable to locate a valid installation of Chrome. Install Google Chrome "
            "or try specifying a valid location with the --chrome-path option.",
            details={"searched": list(searched or [])},
        )


# ============ Scan Errors (unit-scoped) ============


class ScanError(WebReconException):
    """Base class for errors confined to a single unit of work."""

    error_code = "SCAN_ERROR"
    fatal = False


class ScreenshotError(ScanError):
    """Browser could not be started or exited with an error."""

    error_code = "SCREENSHOT_FAILED"

    def __init__(self, url: str, reason: str):
        super().__init__(f"{url}: screenshot failed: {reason}", details={"url": url, "reason": reason})


class ScreenshotTimeoutError(ScreenshotError):
    """Browser did not finish before the screenshot deadline."""

    error_code = "SCREENSHOT_TIMEOUT"

    def __init__(self, url: str, timeout_seconds: float):
        super().__init__(url, f"timed out after {timeout_seconds}s")
        self.details["timeout_seconds"] = timeout_seconds
