"""
Keys and constants of the config_v5.json document.
"""

SDK_VERSION = "1.0.0"

CONFIG_FILE_NAME = "config_v5"
SCHEMA_VERSION = "v5"

# Top level
PREFERENCES = "p"
FEATURE_FLAGS = "f"

# Preferences
BASE_URL = "u"
REDIRECT = "r"

# Setting
VALUE = "v"
SETTING_TYPE = "t"
VARIATION_ID = "i"
ROLLOUT_RULES = "r"
ROLLOUT_PERCENTAGE_ITEMS = "p"

# Targeting rule
ORDER = "o"
COMPARISON_ATTRIBUTE = "a"
COMPARATOR = "t"
COMPARISON_VALUE = "c"

# Percentage item
PERCENTAGE = "p"
