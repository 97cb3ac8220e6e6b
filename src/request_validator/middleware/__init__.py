"""
Request validation middleware for ASGI and WSGI frameworks.

Re-exports middleware classes for convenient imports:
    from request_validator.middleware import RequestValidatorASGIMiddleware
    from request_validator.middleware import RequestValidatorWSGIMiddleware
"""

from .wsgi import RequestValidatorWSGIMiddleware

__all__: list[str] = ["RequestValidatorWSGIMiddleware"]

# ASGI middleware (FastAPI, Starlette), requires the "asgi" extra
try:
    from .asgi import RequestValidatorASGIMiddleware
    __all__.append("RequestValidatorASGIMiddleware")
except ImportError:
    pass
