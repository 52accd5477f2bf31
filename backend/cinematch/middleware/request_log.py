import time
from fastapi import Request
from starlette.middleware.base import BaseHTTPMiddleware

from cinematch.core.logger import get_app_logger, get_request_ip, reset_request_ip, set_request_ip


def client_ip(request: Request) -> str:
    # X-Forwarded-For first when running behind a reverse proxy
    xff = request.headers.get("x-forwarded-for")
    if xff:
        return xff.split(",")[0].strip()
    return request.client.host if request.client else "-"

class RequestLogMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next):
        app_logger = get_app_logger()
        token = set_request_ip(client_ip(request))

        start = time.time()
        try:
            response = await call_next(request)
            status = response.status_code
            dur = int((time.time() - start) * 1000)
            app_logger.info(f"{get_request_ip()} - {request.method} {request.url.path} {status} {dur}ms")
            return response
        except Exception as e:
            app_logger.exception(f"{get_request_ip()} - ERROR {request.method} {request.url.path}: {e}")
            raise
        finally:
            # restore the context so the IP never leaks across requests
            reset_request_ip(token)
