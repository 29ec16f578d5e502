"""
Gunicorn configuration for production deployment.
The rate window lives in process memory, so run a single worker.
"""
import os

# Server socket
bind = f"0.0.0.0:{os.getenv('PORT', '3000')}"
backlog = 2048

# Worker processes
workers = int(os.getenv('WORKERS', '1'))
worker_class = "uvicorn.workers.UvicornWorker"
worker_connections = 1000

# Timeouts (Gemini calls are bounded by AI_TIMEOUT_SEC)
timeout = int(os.getenv('AI_TIMEOUT_SEC', '30')) + 15
keepalive = 5
graceful_timeout = 30

# Process naming
proc_name = "learnlab-backend"

# Logging
accesslog = "-"
errorlog = "-"
loglevel = os.getenv("LOG_LEVEL", "info").lower()
access_log_format = '%(h)s %(l)s %(u)s %(t)s "%(r)s" %(s)s %(b)s "%(f)s" "%(a)s" %(D)s'

# Security
limit_request_line = 8192
limit_request_fields = 100
limit_request_field_size = 8190

secure_scheme_headers = {
    'X-FORWARDED-PROTOCOL': 'ssl',
    'X-FORWARDED-PROTO': 'https',
    'X-FORWARDED-SSL': 'on'
}

wsgi_app = "learnlab.main:app"

# Hooks
def on_starting(server):
    """Called just before the master process is initialized."""
    server.log.info("🚀 LearnLab Backend starting...")

def when_ready(server):
    """Called just after the server is started."""
    server.log.info("✅ LearnLab Backend ready to serve requests")

def worker_int(worker):
    """Called just after a worker exited on SIGINT or SIGQUIT."""
    worker.log.info(f"💀 Worker {worker.pid} interrupted")

def worker_abort(worker):
    """Called when a worker received the SIGABRT signal."""
    worker.log.error(f"💥 Worker {worker.pid} aborted")

# Environment-specific settings
if os.getenv('ENVIRONMENT') == 'development':
    reload = True
    loglevel = 'debug'
else:
    reload = False
    worker_tmp_dir = "/dev/shm"  # Use tmpfs for better performance
