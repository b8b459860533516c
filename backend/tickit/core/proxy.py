"""WSGI proxy middleware configuration helper."""

from __future__ import annotations

from flask import Flask
from werkzeug.middleware.proxy_fix import ProxyFix


def init_app(app: Flask) -> None:
    """Wrap the WSGI app in :class:`~werkzeug.middleware.proxy_fix.ProxyFix`.

    Behind a reverse proxy this makes ``request.remote_addr`` (used as the
    login rate-limit key) and ``request.scheme`` reflect the client, not the
    proxy. ``USE_PROXYFIX`` toggles it; ``PROXYFIX_HOPS`` is the number of
    trusted proxies in front of the app (one by default).
    """
    if not app.config.get("USE_PROXYFIX", True):
        return
    hops = int(app.config.get("PROXYFIX_HOPS", 1))
    app.wsgi_app = ProxyFix(  # type: ignore[method-assign]
        app.wsgi_app, x_for=hops, x_proto=hops, x_host=hops, x_prefix=hops
    )
