# File: const.py
"""Constants for the SkillMap Progress integration.

This file centralizes configuration keys, defaults, storage keys, data keys,
signal suffixes and service names for consistency across the integration.
"""

import logging

# ------------------------------------------------------------------------------------------------
# General / Integration Information
# ------------------------------------------------------------------------------------------------
# Integration Name
SKILLMAP_TITLE = "SkillMap Progress"

# Integration Domain
DOMAIN = "skillmap_progress"

# Logger
LOGGER = logging.getLogger(__package__)

# Supported Platforms (services-only integration)
PLATFORMS: list[str] = []

# Coordinator
COORDINATOR = "coordinator"
COORDINATOR_SUFFIX = "_coordinator"

# Storage and Versioning
STORAGE_KEY = "skillmap_progress_local_ledger"
STORAGE_VERSION = 1

# ------------------------------------------------------------------------------------------------
# Configuration Keys
# ------------------------------------------------------------------------------------------------
CONF_API_URL = "api_url"
CONF_ACCESS_TOKEN = "access_token"
CONF_SYNC_TIMEOUT = "sync_timeout"

CONFIG_FLOW_STEP_USER = "user"
OPTIONS_FLOW_STEP_INIT = "init"

# ------------------------------------------------------------------------------------------------
# Defaults
# ------------------------------------------------------------------------------------------------
DEFAULT_API_URL = "https://makecode.com"
DEFAULT_SYNC_TIMEOUT = 10
MIN_SYNC_TIMEOUT = 1
MAX_SYNC_TIMEOUT = 120
DEFAULT_API_TIMEOUT = 30
DEFAULT_ZERO = 0
LOCAL_USER_ID = "local"

# ------------------------------------------------------------------------------------------------
# Cloud API Paths
# ------------------------------------------------------------------------------------------------
API_PATH_PROFILE = "/api/user/profile"
API_PATH_PROGRESS = "/api/user/skillmap"
API_PATH_BADGES = "/api/user/badges"
API_PATH_GRANT_BADGES = "/api/user/badges/grant"
API_PATH_PREFERENCES = "/api/user/preferences"
API_PATH_TRANSFER_PROJECTS = "/api/projects/transfer"
API_PATH_PROJECT_CLOUD_STATUS = "/api/projects/cloudstatus"

API_KEY_HEADER_IDS = "header_ids"
API_KEY_HEADER_ID_MAP = "header_id_map"
API_KEY_NEW_BADGES = "new_badges"
API_KEY_GRANTED_BADGES = "granted_badges"

# ------------------------------------------------------------------------------------------------
# Ledger Data Keys
# ------------------------------------------------------------------------------------------------
DATA_LEDGER_ID = "id"
DATA_LEDGER_VERSION = "version"
DATA_LEDGER_MAP_PROGRESS = "map_progress"
DATA_LEDGER_COMPLETED_TAGS = "completed_tags"

DATA_MAP_ID = "map_id"
DATA_MAP_COMPLETION_STATE = "completion_state"
DATA_MAP_ACTIVITY_STATE = "activity_state"

DATA_ACTIVITY_ID = "activity_id"
DATA_ACTIVITY_IS_COMPLETED = "is_completed"
DATA_ACTIVITY_HEADER_ID = "header_id"

# Map completion states
MAP_STATE_NOT_STARTED = "notstarted"
MAP_STATE_IN_PROGRESS = "inprogress"
MAP_STATE_COMPLETED = "completed"

# ------------------------------------------------------------------------------------------------
# Map Definition Keys (parsed skill map supplied by the page source)
# ------------------------------------------------------------------------------------------------
DATA_MAP_DEF_TITLE = "title"
DATA_MAP_DEF_ACTIVITIES = "activities"
DATA_ACTIVITY_DEF_KIND = "kind"
DATA_ACTIVITY_DEF_TAGS = "tags"
DATA_ACTIVITY_DEF_PREREQUISITES = "prerequisites"
DATA_ACTIVITY_DEF_REWARDS = "rewards"
DATA_REWARD_TYPE = "type"
DATA_REWARD_BADGE = "badge"

ACTIVITY_KIND_ACTIVITY = "activity"
ACTIVITY_KIND_REWARD = "reward"
ACTIVITY_KIND_COMPLETION = "completion"
ACTIVITY_KINDS = [
    ACTIVITY_KIND_ACTIVITY,
    ACTIVITY_KIND_REWARD,
    ACTIVITY_KIND_COMPLETION,
]

REWARD_TYPE_BADGE = "badge"
REWARD_TYPE_CERTIFICATE = "certificate"

# ------------------------------------------------------------------------------------------------
# Badge Keys
# ------------------------------------------------------------------------------------------------
DATA_BADGES = "badges"
DATA_BADGE_ID = "id"
DATA_BADGE_TYPE = "type"
DATA_BADGE_TITLE = "title"
DATA_BADGE_IMAGE = "image"
DATA_BADGE_SOURCE_URL = "source_url"

BADGE_TYPE_SKILLMAP_COMPLETION = "skillmap-completion"

# ------------------------------------------------------------------------------------------------
# Profile Keys
# ------------------------------------------------------------------------------------------------
DATA_PROFILE_ID = "id"
DATA_PROFILE_USERNAME = "username"

# ------------------------------------------------------------------------------------------------
# Page Source Status
# ------------------------------------------------------------------------------------------------
SOURCE_STATUS_APPROVED = "approved"
SOURCE_STATUS_UNKNOWN = "unknown"
SOURCE_STATUS_BANNED = "banned"
SOURCE_STATUS_NOT_APPROVED = "notapproved"
SOURCE_STATUSES = [
    SOURCE_STATUS_APPROVED,
    SOURCE_STATUS_UNKNOWN,
    SOURCE_STATUS_BANNED,
    SOURCE_STATUS_NOT_APPROVED,
]

# ------------------------------------------------------------------------------------------------
# Sync Orchestrator States
# ------------------------------------------------------------------------------------------------
SYNC_STATE_IDLE = "idle"
SYNC_STATE_CHECKING_AUTH = "checking_auth"
SYNC_STATE_NOT_SIGNED_IN = "not_signed_in"
SYNC_STATE_SYNCING_CLOUD = "syncing_cloud"
SYNC_STATE_DONE = "done"

# Ledger persistence scopes
SCOPE_LOCAL = "local"
SCOPE_CLOUD = "cloud"

# ------------------------------------------------------------------------------------------------
# Snapshot Keys (published coordinator data)
# ------------------------------------------------------------------------------------------------
SNAPSHOT_LEDGER = "ledger"
SNAPSHOT_BADGE_STATE = "badge_state"
SNAPSHOT_PREFERENCES = "preferences"
SNAPSHOT_MAPS = "maps"
SNAPSHOT_SOURCE_URL = "source_url"
SNAPSHOT_SOURCE_STATUS = "source_status"
SNAPSHOT_SIGNED_IN = "signed_in"
SNAPSHOT_PROFILE = "profile"
SNAPSHOT_SYNC_STATE = "sync_state"
SNAPSHOT_SCOPE = "scope"

# ------------------------------------------------------------------------------------------------
# Event Signal Suffixes (instance-scoped dispatcher signals)
# ------------------------------------------------------------------------------------------------
SIGNAL_SUFFIX_LEDGER_CHANGED = "ledger_changed"
SIGNAL_SUFFIX_SYNC_SETTLED = "sync_settled"
SIGNAL_SUFFIX_PAGE_SOURCE_CHANGED = "page_source_changed"
SIGNAL_SUFFIX_BADGES_GRANTED = "badges_granted"

# Home Assistant bus event for automations
EVENT_BADGES_GRANTED = f"{DOMAIN}_badges_granted"

# ------------------------------------------------------------------------------------------------
# Services
# ------------------------------------------------------------------------------------------------
SERVICE_SET_PAGE_SOURCE = "set_page_source"
SERVICE_RECORD_ACTIVITY = "record_activity"
SERVICE_SAVE_ACTIVITY_PROJECT = "save_activity_project"
SERVICE_DEBUG_PROGRESS = "debug_progress"

FIELD_SOURCE = "source"
FIELD_STATUS = "status"
FIELD_MAPS = "maps"
FIELD_MAP_ID = "map_id"
FIELD_ACTIVITY_ID = "activity_id"
FIELD_HEADER_ID = "header_id"
FIELD_MODE = "mode"

DEBUG_MODE_NEW_USER = "new_user"
DEBUG_MODE_COMPLETED = "completed"
DEBUG_MODES = [DEBUG_MODE_NEW_USER, DEBUG_MODE_COMPLETED]

# ------------------------------------------------------------------------------------------------
# Translation Keys
# ------------------------------------------------------------------------------------------------
TRANS_KEY_ERROR_SINGLE_INSTANCE = "single_instance_allowed"
TRANS_KEY_ERROR_INVALID_URL = "invalid_url"
TRANS_KEY_ERROR_NOT_LOADED = "not_loaded"
TRANS_KEY_ERROR_UNKNOWN_MAP = "unknown_map"
TRANS_KEY_ERROR_UNKNOWN_ACTIVITY = "unknown_activity"
TRANS_KEY_ERROR_NO_SOURCE = "no_page_source"

# Diagnostics
DIAGNOSTICS_TO_REDACT = {CONF_ACCESS_TOKEN}
