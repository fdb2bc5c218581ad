"""
Centralized custom exception definitions for the membership registry.

Each exception inherits from BaseAppError, which itself extends Werkzeug's
HTTPException, allowing clean integration with Flask's error system and
JSON-formatted API responses.

Domain Groups:
--------------
1. Validation Errors (400)
2. Permission Errors (403)
3. Import Errors (500)
4. Database Errors (404–503)
5. System Errors (500)
"""

from werkzeug.exceptions import HTTPException


class BaseAppError(HTTPException):
    """Root application error, base for all custom exceptions."""
    code = 500
    description = "Application error"

    def __init__(self, message=None, details=None, code=None):
        super().__init__(description=message or self.description)
        self.message = message or self.description
        self.details = details or {}
        if code:
            self.code = code

    def to_dict(self):
        """Serialize error info into a JSON-safe dictionary."""
        return {
            "status": "error",
            "error": self.__class__.__name__,
            "message": self.message,
            "details": self.details
        }


# ==============================================================================
# 1. VALIDATION ERRORS (HTTP 400)
# ==============================================================================

class ValidationError(BaseAppError):
    code = 400
    description = "Validation error"


class InvalidRutError(ValidationError):
    description = "Invalid RUT. Example: 9.313.137-1"


class MissingTableError(ValidationError):
    description = "Member table not found in Excel file"


class InvalidFormatError(ValidationError):
    description = "Invalid Excel format or unsupported structure"


# ==============================================================================
# 2. PERMISSION ERRORS (HTTP 403)
# ==============================================================================

class PermissionDeniedError(BaseAppError):
    code = 403
    description = "Your role does not allow this operation"


# ==============================================================================
# 3. IMPORT ERRORS (HTTP 500)
# ==============================================================================

class ImportStoreError(BaseAppError):
    """
    Raised when the member store rejects a write in the middle of an import.
    Rows processed before the failure stay committed; ``details`` carries the
    partial counts.
    """
    code = 500
    description = "Import aborted: the member store rejected a write"


# ==============================================================================
# 4. DATABASE ERRORS (HTTP 404–503)
# ==============================================================================

class DatabaseConnectionError(BaseAppError):
    code = 503
    description = "Database connection failed"


class DuplicateKeyError(BaseAppError):
    code = 409
    description = "Duplicate record detected"


class RecordNotFoundError(BaseAppError):
    code = 404
    description = "Requested record not found"


# ==============================================================================
# 5. SYSTEM ERRORS (HTTP 500)
# ==============================================================================

class ConfigurationError(BaseAppError):
    code = 500
    description = "Configuration missing or invalid"
