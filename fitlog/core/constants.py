"""Static constants and mappings for fitlog."""

from __future__ import annotations

IDENTITY_BASE = "https://identitytoolkit.googleapis.com/v1"
SECURE_TOKEN_BASE = "https://securetoken.googleapis.com/v1"
FIRESTORE_BASE = "https://firestore.googleapis.com/v1"

USERS_COLLECTION = "users"
WORKOUT_LOGS_COLLECTION = "workout_logs"

# Seconds before expiry at which a cached id token is refreshed.
TOKEN_REFRESH_MARGIN = 60

AUTH_ERROR_MESSAGES = {
    "EMAIL_NOT_FOUND": "No user exists with that email.",
    "INVALID_PASSWORD": "Incorrect password.",
    "INVALID_LOGIN_CREDENTIALS": "Incorrect email or password.",
    "USER_DISABLED": "This account has been disabled.",
    "WEAK_PASSWORD": "Password is too weak.",
    "EMAIL_EXISTS": "That email is already in use.",
    "INVALID_EMAIL": "That email address is not valid.",
    "TOO_MANY_ATTEMPTS_TRY_LATER": "Too many attempts. Try again later.",
    "TOKEN_EXPIRED": "Session expired. Log in again.",
    "INVALID_REFRESH_TOKEN": "Session expired. Log in again.",
}

WEEKDAY_LABELS = ["Mon", "Tue", "Wed", "Thu", "Fri", "Sat", "Sun"]
WEEK_START_BY_NAME = {"monday": 0, "sunday": 6}
