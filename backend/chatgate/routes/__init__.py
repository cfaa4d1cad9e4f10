# Routes package init
"""
ChatGate Backend — API Routes Package
=======================================

Route Inventory:
    - auth.py:     POST /api/auth/signup, POST /api/auth/login
    - chat.py:     POST /api/chat, GET /api/profile   (bearer token required)
    - webhook.py:  POST /api/kofi-webhook             (Ko-fi verification token required)
    - health.py:   GET  /health

Routes stay thin: extract input, call a service, return the schema.
Errors are raised as chatgate.exceptions and formatted by main.py.
"""
