"""Wire-level constants shared by the gateway and the passthrough proxy."""

from gemini_gateway import __version__

# Upstream provider
GEMINI_API_BASE_URL = "https://generativelanguage.googleapis.com"
GEMINI_API_VERSION = "v1beta"
DEFAULT_CHAT_MODEL = "gemini-1.5-flash-latest"
DEFAULT_EMBEDDINGS_MODEL = "text-embedding-004"
MODEL_NAME_PREFIX = "models/"
MODEL_OWNER = "google"

GEMINI_API_KEY_HEADER = "x-goog-api-key"
GEMINI_API_CLIENT_HEADER = "x-goog-api-client"
GEMINI_API_CLIENT = f"gemini-gateway/{__version__}"

HARM_CATEGORIES = (
    "HARM_CATEGORY_HATE_SPEECH",
    "HARM_CATEGORY_SEXUALLY_EXPLICIT",
    "HARM_CATEGORY_DANGEROUS_CONTENT",
    "HARM_CATEGORY_HARASSMENT",
)
DEFAULT_SAFETY_THRESHOLD = "BLOCK_NONE"

# Inbound authentication
MASTER_KEY_HEADER = "X-Master-Key"

# Relay
RELAY_TARGET_HEADER = "X-Proxy-Target"
RELAY_AUTH_HEADER = "X-Worker-Auth"
TARGET_HOST_HEADER = "X-Target-Host"
PROXY_VIA_HEADER = "X-Proxy-Via"
PROXY_VIA_VALUE = "gemini-gateway-passthrough"

# Cross-origin
CORS_ALLOW_METHODS = ("GET", "POST", "PUT", "DELETE", "OPTIONS")
CORS_ALLOW_HEADERS = (
    "Content-Type",
    "Authorization",
    MASTER_KEY_HEADER,
    GEMINI_API_KEY_HEADER,
)
CORS_MAX_AGE = 86400

# Messages
HTTP_401_UNAUTHORIZED_MESSAGE = (
    "Unauthorized: Missing or invalid X-Master-Key for proxy."
)
HTTP_404_NOT_FOUND_MESSAGE = "Not Found: The requested endpoint does not exist."
METHOD_NOT_ALLOWED_MESSAGE = (
    "The specified HTTP method is not allowed for the requested resource"
)
INTERNAL_SERVER_ERROR_MESSAGE = "Internal Server Error"

# Never copied from an upstream answer
HOP_BY_HOP_HEADERS = frozenset(
    {
        "connection",
        "keep-alive",
        "proxy-authenticate",
        "proxy-authorization",
        "te",
        "trailers",
        "transfer-encoding",
        "upgrade",
    }
)
