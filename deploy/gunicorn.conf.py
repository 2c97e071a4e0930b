"""Gunicorn configuration for the SiteForge service.

Usage:
    gunicorn main:app -c deploy/gunicorn.conf.py

Generation requests are I/O bound: one request may walk several LLM tiers
sequentially, each with its own timeout (up to 5 minutes for the largest
cloud fallback), so worker timeouts are generous.
"""

import multiprocessing
import os

# ─── Server socket ──────────────────────────────────────────────

bind = os.getenv("BIND", "0.0.0.0:5000")
backlog = 2048

# ─── Worker processes ───────────────────────────────────────────
#
# Async ASGI workers: one per core, capped at 4.  Rate-limiter state is
# per worker.

workers = int(os.getenv("WORKERS", min(multiprocessing.cpu_count(), 4)))
worker_class = "uvicorn.workers.UvicornWorker"

# ─── Timeouts ───────────────────────────────────────────────────

timeout = int(os.getenv("WORKER_TIMEOUT", "900"))
graceful_timeout = 60
keepalive = 120

# ─── Worker recycling ──────────────────────────────────────────

max_requests = 2000
max_requests_jitter = 300

# ─── Logging ────────────────────────────────────────────────────

accesslog = "-"
errorlog = "-"
loglevel = os.getenv("LOG_LEVEL", "info").lower()
access_log_format = (
    '%(h)s %(l)s %(u)s %(t)s "%(r)s" %(s)s %(b)s "%(f)s" %(D)sμs'
)

proc_name = "siteforge"


def on_starting(server):
    """Called just before the master process is initialized."""
    server.log.info(
        "Starting SiteForge — workers=%d, timeout=%ds, bind=%s",
        workers,
        timeout,
        bind,
    )


def worker_exit(server, worker):
    server.log.info("Worker exit (pid: %s)", worker.pid)
