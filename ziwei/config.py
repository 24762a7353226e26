"""
Runtime configuration, read from the environment (and an optional .env file).
"""

import os
from dotenv import load_dotenv

load_dotenv()


# ============================================================
# CACHE
# ============================================================
CACHE_MAX_SIZE = int(os.getenv("ZIWEI_CACHE_MAX_SIZE", 50))

# ============================================================
# LOGGING
# ============================================================
LOG_LEVEL = os.getenv("ZIWEI_LOG_LEVEL", "INFO")

# ============================================================
# DEFAULT CHART SETTINGS
# ============================================================
# Used when a BirthInput does not name a policy explicitly
LEAP_MONTH_HANDLING = os.getenv("ZIWEI_LEAP_MONTH_HANDLING", "mid")
ZI_HOUR_HANDLING = os.getenv("ZIWEI_ZI_HOUR_HANDLING", "midnightChange")
WOUNDED_SERVANT = os.getenv("ZIWEI_WOUNDED_SERVANT", "zhongzhou")
VOID_DISPLAY = os.getenv("ZIWEI_VOID_DISPLAY", "marked")
