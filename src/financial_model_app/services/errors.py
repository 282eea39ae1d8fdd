"""Error taxonomy for failures surfaced to the user.

Only network-bound operations (auth, hosted store, AI calls) raise. Their
messages are classified by substring into a user-friendly explanation plus
the technical detail, which the API returns alongside the raw message.
"""
from __future__ import annotations

from enum import Enum
from typing import Tuple

from pydantic import BaseModel


class ErrorCategory(str, Enum):
    INVALID_CREDENTIALS = "invalid_credentials"
    EMAIL_NOT_CONFIRMED = "email_not_confirmed"
    ALREADY_REGISTERED = "already_registered"
    NETWORK = "network"
    DATA_ACCESS = "data_access"
    AI_QUOTA = "ai_quota"
    RATE_LIMIT = "rate_limit"
    PERMISSION = "permission"
    UNKNOWN = "unknown"


class ErrorDetails(BaseModel):
    category: ErrorCategory
    title: str
    user_friendly: str
    technical: str


class FinancialModelError(Exception):
    status_code = 500

    def __init__(self, message: str, status_code: int | None = None) -> None:
        super().__init__(message)
        self.message = message
        if status_code is not None:
            self.status_code = status_code


class GenerationError(FinancialModelError):
    status_code = 502


class AnalysisError(FinancialModelError):
    status_code = 502


class AuthServiceError(FinancialModelError):
    status_code = 401


class DataAccessError(FinancialModelError):
    status_code = 503


class RecordNotFoundError(FinancialModelError):
    status_code = 404


# Checked in order; the first rule whose keywords appear in the message wins.
_RULES: Tuple[Tuple[ErrorCategory, Tuple[str, ...], str, str, str], ...] = (
    (
        ErrorCategory.INVALID_CREDENTIALS,
        ("invalid login credentials",),
        "Login Failed",
        "The email or password you entered is incorrect. Please double-check and try again.",
        "Authentication credentials do not match our records",
    ),
    (
        ErrorCategory.EMAIL_NOT_CONFIRMED,
        ("email not confirmed",),
        "Email Not Verified",
        "You need to check your email and click the verification link before you can sign in.",
        "User account exists but email verification is pending",
    ),
    (
        ErrorCategory.ALREADY_REGISTERED,
        ("user already registered",),
        "Account Already Exists",
        "An account with this email already exists. Please try signing in instead of creating a new account.",
        "Attempted to create duplicate account",
    ),
    (
        ErrorCategory.NETWORK,
        ("network", "connection", "timeout"),
        "Connection Problem",
        "There's a problem with your internet connection. Please check your connection and try again.",
        "Network connectivity or timeout issue",
    ),
    (
        ErrorCategory.DATA_ACCESS,
        ("database", "supabase", "rls", "policy"),
        "Data Access Issue",
        "We're having trouble accessing your data. This is usually temporary. Please try again in a moment.",
        "Database or row-level security policy issue",
    ),
    (
        ErrorCategory.AI_QUOTA,
        ("openai", "quota", "insufficient_quota"),
        "AI Service Unavailable",
        "The AI model generator is temporarily unavailable due to usage limits. "
        "You can still create your financial model manually.",
        "OpenAI API quota exceeded or service unavailable",
    ),
    (
        ErrorCategory.RATE_LIMIT,
        ("429", "rate limit"),
        "Too Many Requests",
        "You're trying too fast! Please wait a moment before trying again.",
        "API rate limit exceeded",
    ),
    (
        ErrorCategory.PERMISSION,
        ("permission", "unauthorized", "forbidden"),
        "Permission Denied",
        "You don't have permission to access this data. Please sign in again or contact support.",
        "Authorization or permission error",
    ),
)


def classify_error(error: Exception | str) -> ErrorDetails:
    message = str(error)
    lowered = message.lower()
    for category, keywords, title, user_friendly, technical in _RULES:
        if any(keyword in lowered for keyword in keywords):
            return ErrorDetails(category=category, title=title, user_friendly=user_friendly, technical=technical)
    return ErrorDetails(
        category=ErrorCategory.UNKNOWN,
        title="Something Went Wrong",
        user_friendly="An unexpected error occurred. Our team has been notified and we're working to fix it.",
        technical=message or "Unknown error",
    )
