"""
Configuration Constants and Settings
===================================

This module centralizes the constants used throughout the template builder:
ARM resource types and API versions, default values applied by the property
mapper, the directory layout of the content repository, and logging formats.

When the deployment format moves to a newer API version, or the repository
layout changes, this is the single place to adjust.
"""

import re

# Version information - used for tracking and compatibility
VERSION = "1.4.0"
APPLICATION_NAME = "Sentinel Content Template Builder"

# ARM template envelope
TEMPLATE_SCHEMA = "https://schema.management.azure.com/schemas/2019-04-01/deploymentTemplate.json#"
TEMPLATE_CONTENT_VERSION = "1.0.0.0"
WORKSPACE_PARAMETER = "workspace"
WORKSPACE_LOCATION_PARAMETER = "workspace-location"

# Resource types and API versions, one pair per resource family
SAVED_SEARCH_TYPE = "Microsoft.OperationalInsights/workspaces/savedSearches"
SAVED_SEARCH_API_VERSION = "2020-08-01"

ALERT_RULE_TYPE = "Microsoft.OperationalInsights/workspaces/providers/alertRules"
ALERT_RULE_API_VERSION = "2023-02-01-preview"
ALERT_RULE_PROVIDER_SEGMENT = "Microsoft.SecurityInsights"

AUTOMATION_RULE_TYPE = "Microsoft.SecurityInsights/automationRules"
AUTOMATION_RULE_API_VERSION = "2022-12-01-preview"

LOGIC_APP_TYPE = "Microsoft.Logic/workflows"

# Saved search categories
ASIM_CATEGORY = "ASIM"
HUNTING_CATEGORY = "Hunting Queries"
SAVED_SEARCH_VERSION = 1

# Defaults applied by the property mapper
DEFAULT_SEVERITY = "Medium"
DEFAULT_SUPPRESSION_DURATION = "PT1H"
DEFAULT_TEMPLATE_VERSION = "1.0.0"
DEFAULT_TRIGGER_OPERATOR = "GreaterThan"

# Short operator spellings accepted in rule files
OPERATOR_ALIASES = {
    'lt': 'LessThan',
    'eq': 'Equal',
    'ne': 'NotEqual',
}

# Raw durations such as "5h", "30m" or "14d"
RAW_DURATION_PATTERN = re.compile(r'^(\d+)([HMD])$', re.IGNORECASE)

# Workbook documents carry a version such as "Notebook/1.0"
WORKBOOK_VERSION_PATTERN = re.compile(r'^Notebook/\d+\.\d+$')

# File processing settings
SUPPORTED_EXTENSIONS = {'.yaml', '.yml', '.json'}
ENCODING = 'utf-8'
MAX_FILE_SIZE = 10 * 1024 * 1024  # 10MB per content file

# Content repository layout, relative to the repository root
SHARED_DIRECTORY = "Shared"
SHARED_ARTIFACTS_DIRECTORY = "Shared/Artifacts"
CUSTOMERS_DIRECTORY = "Customers"
CUSTOMER_RULES_DIRECTORY = "Rules"
CUSTOMER_ARTIFACTS_DIRECTORY = "Artifacts"
CONFIG_FILE_NAMES = ("config.yaml", "config.yml", "config.json")
DEFAULT_OUTPUT_DIRECTORY = "Output"

# Required keys of the customer "Settings" block
REQUIRED_SETTINGS = (
    'CustomerName',
    'Location',
    'Workspace-Name',
    'Automation-Resource-Group',
)

# Logging configuration
LOG_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(funcName)s:%(lineno)d - %(message)s'
LOG_DATE_FORMAT = '%Y-%m-%d %H:%M:%S'


def get_banner() -> str:
    """
    Returns the application banner for CLI display.
    """
    banner = f"""
{'='*60}
{APPLICATION_NAME} v{VERSION}
{'='*60}
Compiles shared and customer Microsoft Sentinel content
into one ARM deployment template per customer.
{'='*60}
"""
    return banner


def customer_directory(customer: str) -> str:
    """Return the repository-relative directory holding a customer's content."""
    return f"{CUSTOMERS_DIRECTORY}/{customer}"
