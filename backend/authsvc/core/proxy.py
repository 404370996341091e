"""Client-address resolution behind reverse proxies."""

from __future__ import annotations

from flask import Flask
from werkzeug.middleware.proxy_fix import ProxyFix


def init_app(app: Flask) -> None:
    """Wrap the WSGI app in :class:`~werkzeug.middleware.proxy_fix.ProxyFix`.

    Tokens are pinned to ``request.remote_addr``; behind a proxy that address
    must come from ``X-Forwarded-For``, or every client would share the
    proxy's address. ``PROXY_TRUSTED_HOPS`` is the number of proxies in front
    of the app. Trusting more hops than exist lets clients forge their
    address, so it defaults to one. ``USE_PROXYFIX=false`` disables it for
    direct exposure.
    """
    if not app.config.get("USE_PROXYFIX", True):
        return
    hops = int(app.config.get("PROXY_TRUSTED_HOPS", 1))
    app.wsgi_app = ProxyFix(app.wsgi_app, x_for=hops, x_proto=hops, x_host=0, x_prefix=0)
