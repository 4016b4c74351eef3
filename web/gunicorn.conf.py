import os


def cpu():
    return max(1, (os.cpu_count() or 1))


wsgi_app = "storefront.wsgi:application"
bind = os.getenv("GUNI_BIND", "0.0.0.0:8000")

# Worker processes
workers = int(os.getenv("GUNI_WORKERS", str(min(max(2, cpu() * 2), 8))))

# Threads per worker (outbound calls to the payment provider block)
worker_class = "gthread"
threads = int(os.getenv("GTHREADS", "4"))

# Timeouts; keep above HTTP_DOWNLOAD_TIMEOUT_SECS for translation downloads
timeout = int(os.getenv("GUNI_TIMEOUT", "90"))
graceful_timeout = int(os.getenv("GUNI_GRACEFUL_TIMEOUT", "30"))
keepalive = int(os.getenv("GUNI_KEEPALIVE", "5"))

preload_app = True
max_requests = int(os.getenv("GUNI_MAX_REQUESTS", "2000"))
max_requests_jitter = int(os.getenv("GUNI_MAX_REQUESTS_JITTER", "200"))

# Access/error logs to stdout; application logs go through Django LOGGING (JSON)
accesslog = "-"
errorlog = "-"
loglevel = os.getenv("GUNI_LOGLEVEL", "info")
