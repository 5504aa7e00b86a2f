"""Configuration constants for Graph OAuth (graphoauth)."""

from datetime import timedelta

# Microsoft identity platform cloud instances
AZURE_PUBLIC_INSTANCE = "https://login.microsoftonline.com"
AZURE_CHINA_INSTANCE = "https://login.chinacloudapi.cn"
AZURE_GERMANY_INSTANCE = "https://login.microsoftonline.de"
AZURE_US_GOVERNMENT_INSTANCE = "https://login.microsoftonline.us"

# Microsoft Graph API constants
GRAPH_API_ENDPOINT = "https://graph.microsoft.com/v1.0"
DEFAULT_SCOPE = "https://graph.microsoft.com/.default"  # Scope for confidential client flow

# Token lifetime constants
TOKEN_REFRESH_BUFFER = timedelta(minutes=5)
CLIENT_ASSERTION_LIFETIME = 600  # seconds
DEFAULT_TOKEN_LIFETIME = 3600  # seconds, when expires_in is absent
ID_TOKEN_CLOCK_SKEW = 120  # seconds

# Device code polling
DEVICE_CODE_DEFAULT_INTERVAL = 5  # seconds
DEVICE_CODE_SLOW_DOWN_INCREMENT = 5  # seconds

# Upload session constants
BYTE_RANGE_UNIT = 320 * 1024  # Graph requires chunks in multiples of 320 KiB
CHUNK_SIZE = 32 * BYTE_RANGE_UNIT  # 10 MiB
SMALL_FILE_THRESHOLD = 4 * 1024 * 1024  # 4 MiB

# Environment variable names
ENV_TENANT_ID = "AZURE_TENANT_ID"
ENV_CLIENT_ID = "AZURE_CLIENT_ID"
ENV_CLIENT_SECRET = "AZURE_CLIENT_SECRET"
ENV_USERNAME = "AZURE_USERNAME"
ENV_PASSWORD = "AZURE_PASSWORD"
ENV_USER_ID = "GRAPH_USER_ID"

# HTTP retry limits
MAX_RETRIES = 3
RETRY_DELAY = 1  # seconds, doubled on every attempt
REQUEST_TIMEOUT = 30  # seconds
