"""Configuration settings for Ollama Agent."""

# Backend
OLLAMA_BASE_URL = "http://localhost:11434"
PROBE_TIMEOUT_S = 5.0

# Chat
DEFAULT_TEMPERATURE = 0.7
NO_RESPONSE_PLACEHOLDER = "No response"

# Simulator
SIMULATED_CHUNK_DELAY_MS = 50

# Server
HOST = "127.0.0.1"
PORT = 7878

# API
API_PREFIX = "/api"
API_VERSION = "1.0.0"

# Notifications kept for the state endpoint
MAX_NOTIFICATIONS = 50
