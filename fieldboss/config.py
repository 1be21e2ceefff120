"""Bot configuration constants and settings."""

import os

# Operational timezone (Philippines, GMT+8, no DST)
TIMEZONE = "Asia/Manila"

DATABASE_PATH = os.getenv("DATABASE_PATH", "field_boss.db")

DEFAULT_WARNING_MINUTES = 5
WARNING_MINUTE_CHOICES = [1, 5, 10, 15, 30, 60]

# Kill reports describe the recent past; anything further ahead rolls back a day
FUTURE_TOLERANCE_HOURS = 2

# Sweep cadences
NOTIFICATION_SWEEP_SECONDS = 60
DISPLAY_REFRESH_SECONDS = 30
RETENTION_SWEEP_HOURS = 1

# Ready timers older than this past their spawn are deleted
RETENTION_WINDOW_HOURS = 1

# Upper bound for a single call to Discord from a sweep
DELIVERY_TIMEOUT_SECONDS = 15

GROUP_BINDING_ID = "all"
GROUP_DISPLAY_LIMIT = 10
AUTOCOMPLETE_LIMIT = 25

SETUP_SESSION_TTL_MINUTES = 15
SETUP_SESSION_MAX_ENTRIES = 500

IMAGES_DIR = "images"
