import multiprocessing
import os

# Gunicorn configuration file
# Run with: gunicorn -c gunicorn_conf.py taskboard.main:app

bind = os.getenv("BIND", "0.0.0.0:8000")

# Every worker reads and writes the same DATA_DIR (or DATABASE_URL),
# so state is shared no matter which worker serves a request.
workers = int(os.getenv("WEB_CONCURRENCY", multiprocessing.cpu_count() * 2 + 1))
worker_class = "uvicorn.workers.UvicornWorker"

timeout = 120
keepalive = 5

# Honour X-Forwarded-Proto so session cookies are marked Secure behind TLS proxies
forwarded_allow_ips = os.getenv("FORWARDED_ALLOW_IPS", "127.0.0.1")

accesslog = "-"
errorlog = "-"
loglevel = os.getenv("LOG_LEVEL", "info").lower()

name = "taskboard_api"
reload = False
