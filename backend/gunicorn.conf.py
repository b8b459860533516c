# Application
wsgi_app = "tickit:create_app()"

# Bind & workers (one thread per request)
bind = "0.0.0.0:8000"
workers = 2  # override with env GUNICORN_WORKERS
threads = 4
timeout = 60
graceful_timeout = 30
keepalive = 5

# Logs to stdout/stderr; the app emits JSON on stdout
accesslog = "-"
errorlog = "-"
loglevel = "info"

# Trust proxy headers (ProxyFix handles them inside the app)
forwarded_allow_ips = "*"
proxy_protocol = False
