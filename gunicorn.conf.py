"""
Gunicorn configuration for the min-score criteria service.

Usage:
    gunicorn minscore.main:app -c gunicorn.conf.py
"""

import os

bind = os.getenv("BIND", "0.0.0.0:8000")

# The taxonomy cache and its request coalescing live in each worker process,
# so every extra worker adds its own upstream fetch per project and TTL window.
workers = int(os.getenv("WEB_CONCURRENCY", "2"))

# Uvicorn's ASGI worker for FastAPI
worker_class = "uvicorn.workers.UvicornWorker"

# Worst case per view: first attempt plus two retries against the taxonomy API
timeout = 60

keepalive = 5

accesslog = "-"  # stdout
errorlog = "-"   # stderr
loglevel = "info"
