"""
Configuration constants for the Azure DevOps work item creator.

Values that operators commonly need to tweak can be overridden through
environment variables or a .env file.
"""

import os

import dotenv

dotenv.load_dotenv()


def _env_flag(name: str, default: bool) -> bool:
    value = os.getenv(name)
    if value is None:
        return default
    return value.strip().lower() in ("1", "true", "yes", "on")


# Logging
LOGGING_LEVEL = os.getenv("LOGGING_LEVEL", "INFO")
DATA_DIR = os.getenv("DATA_DIR", "./data")
LOG_FILE = f"{DATA_DIR}/azdo-wi-creator.log"

# Tag stamped on every work item this tool creates. Items without it are
# never updated unless --force is given.
TOOL_TAG = "azdo-wi-creator"

# Azure DevOps REST API
AZDO_API_VERSION = os.getenv("AZDO_API_VERSION", "7.1")
AZDO_REQUEST_TIMEOUT = int(os.getenv("AZDO_REQUEST_TIMEOUT", "30"))
AZDO_PAT_ENV_VAR = "AZURE_DEVOPS_PAT"
AZDO_WORK_ITEMS_BATCH_SIZE = 200

# State assigned to newly created work items
INITIAL_STATE = "New"

# Suffix of the rich-text companion field (e.g. System.Description.Html)
HTML_FIELD_SUFFIX = ".Html"

# WIQL title comparison on the service side may ignore case. When this is
# enabled candidates are filtered again locally with an exact comparison.
TITLE_MATCH_CASE_SENSITIVE = _env_flag("TITLE_MATCH_CASE_SENSITIVE", True)

# Field values longer than this are truncated in simulation output
SIMULATION_VALUE_MAX_LENGTH = 100

# Spec file name resolution (local overrides take precedence)
SPEC_FILE_SUFFIXES = ["-spec.local.json", "-spec.json"]
