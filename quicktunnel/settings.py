"""
Centralized configuration for the quick tunnel keeper.
Override via environment variables; command line options take precedence.
"""
import os

# Session config file holding the tunnel URL and credentials.
CONFIG_FILE = os.environ.get("TUNNEL_CONFIG", "./credentials.json")

# Local web server the tunnel forwards to; also receives the callback.
LOCAL_URL = os.environ.get("TUNNEL_URL", "http://localhost:8080").rstrip("/")

# Path on the local server that is told the public tunnel URL.
CALLBACK_PATH = os.environ.get("CALLBACK", "callback")

# Service which hands out unauthenticated quick tunnels.
QUICK_SERVICE_URL = os.environ.get("QUICK_SERVICE_URL", "https://api.trycloudflare.com").rstrip("/")

# Transport protocol passed to cloudflared.
PROTOCOL = os.environ.get("TUNNEL_TRANSPORT_PROTOCOL", "quic")

# Explicit cloudflared binary; looked up on PATH when unset.
CLOUDFLARED_PATH = os.environ.get("CLOUDFLARED_PATH")

LOG_LEVEL = os.environ.get("TUNNEL_LOGLEVEL", "info")
LOG_FILE = os.environ.get("TUNNEL_LOGFILE")

# Timeout in seconds for each provisioning and callback request.
HTTP_TIMEOUT = 15

# Upper bound in seconds on retrying the callback (15 minutes).
DEFAULT_CALLBACK_MAX_ELAPSED = 900
_max_elapsed_raw = os.environ.get("CALLBACK_MAX_ELAPSED")
CALLBACK_MAX_ELAPSED = DEFAULT_CALLBACK_MAX_ELAPSED
if _max_elapsed_raw is not None:
    try:
        CALLBACK_MAX_ELAPSED = float(_max_elapsed_raw)
    except ValueError:
        CALLBACK_MAX_ELAPSED = DEFAULT_CALLBACK_MAX_ELAPSED
