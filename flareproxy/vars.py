import os

SERVICE_NAME = os.getenv("SERVICE_NAME", "flareproxy")
LOG_LEVEL = os.getenv("LOG_LEVEL", "info").lower()

OTLP_ENDPOINT = os.getenv("OTLP_ENDPOINT")
OTLP_HEADERS = os.getenv("OTLP_HEADERS", "")

DEFAULT_FLARESOLVERR_URL = "http://flaresolverr:8191/v1"
DEFAULT_HOST = "0.0.0.0"
DEFAULT_PORT = 8080

# FlareSolverr only exposes page fetches, so every intent maps to this command.
FLARESOLVERR_COMMAND = "request.get"
FLARESOLVERR_MAX_TIMEOUT_MS = 60000
