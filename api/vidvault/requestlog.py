"""Per-route request logging."""

from fastapi import Request

from vidvault.logging_config import logger, redact_sensitive_data


async def log_request(request: Request):
    """Router dependency logging each call with sensitive parameters redacted."""
    logger.info(
        "Request received",
        method=request.method,
        path=request.url.path,
        path_params=redact_sensitive_data(dict(request.path_params)),
        query=redact_sensitive_data(dict(request.query_params)),
        client=request.client.host if request.client else None,
    )
