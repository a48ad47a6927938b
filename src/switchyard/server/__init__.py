"""Host integration — ASGI adapter and logging setup."""
