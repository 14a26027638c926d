"""Core infrastructure: errors, auth, notifications delivery and the HTTP API."""
