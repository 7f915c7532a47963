"""
Log codes for the intake pipeline.
"""

CONFIG = "config"

# TLS Configuration
TLS = f"{CONFIG}.tls"
TLS_RESOLVED = f"{TLS}.resolved"
TLS_ROOT_CERT_LOADED = f"{TLS}.root_cert_loaded"
TLS_INSECURE_ENABLED = f"{TLS}.insecure_enabled"

# Authorization
AUTH = f"{CONFIG}.auth"
AUTH_RESOLVED = f"{AUTH}.resolved"

# Client lifecycle
CLIENT = "client"
CLIENT_STARTED = f"{CLIENT}.started"
CLIENT_CLOSED = f"{CLIENT}.closed"

# Intake buffer
BUFFER = "intake.buffer"
BUFFER_OVERFLOW_DROPPED = f"{BUFFER}.overflow_dropped"

# Flush loop
FLUSH = "intake.flush"
FLUSH_LOOP_STARTED = f"{FLUSH}.loop_started"
FLUSH_LOOP_STOPPED = f"{FLUSH}.loop_stopped"
FLUSH_DRAINED = f"{FLUSH}.drained"
FLUSH_DELIVERY_FAILED = f"{FLUSH}.delivery_failed"
FLUSH_DROPPED_ON_STOP = f"{FLUSH}.dropped_on_stop"
FLUSH_SERIALIZATION_FAILED = f"{FLUSH}.serialization_failed"
FLUSH_CALLBACK_FAILED = f"{FLUSH}.callback_failed"
FLUSH_STOP_TIMED_OUT = f"{FLUSH}.stop_timed_out"
