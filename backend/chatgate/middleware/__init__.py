# Middleware package init
"""
ChatGate Backend — Middleware Package
=======================================

Middleware Chain:
    Request → [Request ID] → [Logging] → [CORS] → Route Handler

    1. Request ID: correlation id for every log line and error body
    2. Logging: method, path, status and duration of each request
    3. CORS: FastAPI's CORSMiddleware (handles preflight)
"""
