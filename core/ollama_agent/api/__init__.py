"""HTTP API for the browser chat page."""
