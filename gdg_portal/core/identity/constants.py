"""Identity provider vocabulary: attempt statuses, strategies and error codes."""

from __future__ import annotations

STATUS_COMPLETE = "complete"
STATUS_NEEDS_FIRST_FACTOR = "needs_first_factor"
STATUS_NEEDS_SECOND_FACTOR = "needs_second_factor"
STATUS_NEEDS_NEW_PASSWORD = "needs_new_password"
STATUS_MISSING_REQUIREMENTS = "missing_requirements"
STATUS_ABANDONED = "abandoned"

STRATEGY_EMAIL_CODE = "email_code"
STRATEGY_RESET_PASSWORD_EMAIL_CODE = "reset_password_email_code"

ERROR_IDENTIFIER_NOT_FOUND = "form_identifier_not_found"
ERROR_IDENTIFIER_EXISTS = "form_identifier_exists"
ERROR_PASSWORD_INCORRECT = "form_password_incorrect"
ERROR_CODE_INCORRECT = "form_code_incorrect"
ERROR_RESOURCE_NOT_FOUND = "resource_not_found"
ERROR_NETWORK = "network_error"
ERROR_INVALID_RESPONSE = "invalid_response"
ERROR_INVALID_SESSION_TOKEN = "invalid_session_token"
