# Middleware package init
"""
Message Store Backend - Middleware Package
==========================================

Middleware Chain (order matters!):
    Request → [Request ID] → [Logging] → [CORS] → Route Handler

    1. Request ID first: every later log line and error body can cite it
    2. Logging: measures the full handler duration and sees the final status
    3. CORS: Applied by FastAPI's CORSMiddleware (handles preflight)
"""
