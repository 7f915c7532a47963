import os

# Collector wire protocol
INTAKE_EVENTS_PATH = "/intake/v2/events"
NDJSON_CONTENT_TYPE = "application/x-ndjson"

# Name for the trace id field, if one needs to be supplied manually.
TRACE_ID_FIELD_NAME = "trace_id"

# Defaults
DEFAULT_FLUSH_INTERVAL = 1.0  # seconds
REQUEST_TIMEOUT = float(os.getenv("APM_INTAKE_REQUEST_TIMEOUT", 30))

OVERFLOW_DROP_OLDEST = "drop_oldest"
OVERFLOW_DROP_NEWEST = "drop_newest"
VALID_OVERFLOW_POLICIES = (OVERFLOW_DROP_OLDEST, OVERFLOW_DROP_NEWEST)

# Environment variables
ENV_SERVER_URL = "APM_INTAKE_SERVER_URL"
ENV_SECRET_TOKEN = "APM_INTAKE_SECRET_TOKEN"
ENV_API_KEY_ID = "APM_INTAKE_API_KEY_ID"
ENV_API_KEY = "APM_INTAKE_API_KEY"
ENV_ALLOW_INVALID_CERTS = "APM_INTAKE_ALLOW_INVALID_CERTS"
ENV_ROOT_CERT_PATH = "APM_INTAKE_ROOT_CERT_PATH"
ENV_FLUSH_INTERVAL_MS = "APM_INTAKE_FLUSH_INTERVAL_MS"

# Config file
CONFIG_SECTION_NAME = "apm"
