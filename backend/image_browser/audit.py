"""
Operation audit middleware.

Writes one JSON line for every mutating admin request (uploads, folder
create/move/rename/delete) to a dedicated log file, without touching the
route handlers.
"""

import json
import logging
import logging.handlers
import time
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, Optional

from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.types import ASGIApp

from .config import settings
from .dependencies import basic_auth_username


class OperationAuditMiddleware(BaseHTTPMiddleware):
    AUDIT_METHODS = {"POST", "PUT", "PATCH", "DELETE"}
    AUDIT_PATH_PATTERN = "/admin/"

    def __init__(self, app: ASGIApp):
        super().__init__(app)
        self.logger: Optional[logging.Logger] = None
        self._setup_logger()

    def _setup_logger(self):
        if not settings.audit.enabled:
            return

        logs_dir = Path(settings.logs_dir)
        logs_dir.mkdir(parents=True, exist_ok=True)

        self.logger = logging.getLogger("image_browser.audit")
        self.logger.setLevel(logging.INFO)
        if not self.logger.handlers:
            file_handler = logging.handlers.TimedRotatingFileHandler(
                logs_dir / settings.audit.log_file, when="midnight", encoding="utf-8"
            )
            file_handler.setFormatter(logging.Formatter("%(message)s"))
            self.logger.addHandler(file_handler)
            # Keep audit lines out of the application log
            self.logger.propagate = False

    def should_audit(self, request: Request) -> bool:
        if not settings.audit.enabled or not self.logger:
            return False
        return (
            request.method.upper() in self.AUDIT_METHODS
            and self.AUDIT_PATH_PATTERN in request.url.path
        )

    @staticmethod
    def mask_sensitive_data(data: Any) -> Any:
        if not isinstance(data, dict):
            return data
        sensitive = {field.lower() for field in settings.audit.sensitive_fields}
        return {
            key: "***MASKED***"
            if key.lower() in sensitive
            else OperationAuditMiddleware.mask_sensitive_data(value)
            for key, value in data.items()
        }

    async def _read_json_body(self, request: Request) -> Optional[Any]:
        """JSON request bodies only; multipart uploads are never logged."""
        if not settings.audit.log_request_body:
            return None
        if "application/json" not in request.headers.get("content-type", ""):
            return None

        body = await request.body()
        if not body:
            return None
        if len(body) > settings.audit.max_body_size:
            return {"error": "Request body too large for logging"}
        try:
            return self.mask_sensitive_data(json.loads(body))
        except (json.JSONDecodeError, UnicodeDecodeError):
            return {"raw_body": body.decode("utf-8", errors="replace")}

    @staticmethod
    def client_ip(request: Request) -> Optional[str]:
        forwarded_for = request.headers.get("X-Forwarded-For")
        if forwarded_for:
            return forwarded_for.split(",")[0].strip()
        real_ip = request.headers.get("X-Real-IP")
        if real_ip:
            return real_ip
        return request.client.host if request.client else None

    def build_entry(
        self,
        request: Request,
        status_code: int,
        request_body: Optional[Any],
        processing_time: float,
    ) -> str:
        entry: Dict[str, Any] = {
            "timestamp": datetime.now().isoformat(),
            "method": request.method,
            "path": request.url.path,
            "status_code": status_code,
            "success": 200 <= status_code < 400,
            "processing_time_ms": round(processing_time * 1000, 2),
            "client_ip": self.client_ip(request),
            "user_agent": request.headers.get("user-agent"),
            "username": basic_auth_username(request.headers.get("authorization"))
            or "anonymous",
        }
        if request.query_params:
            entry["query_params"] = self.mask_sensitive_data(dict(request.query_params))
        if request_body is not None:
            entry["request_body"] = request_body
        return json.dumps(entry, ensure_ascii=False)

    async def dispatch(self, request: Request, call_next) -> Response:
        if not self.should_audit(request):
            return await call_next(request)

        start_time = time.perf_counter()
        request_body = await self._read_json_body(request)

        try:
            response = await call_next(request)
        except Exception:
            if self.logger:
                self.logger.info(
                    self.build_entry(
                        request, 500, request_body, time.perf_counter() - start_time
                    )
                )
            raise

        if self.logger:
            self.logger.info(
                self.build_entry(
                    request,
                    response.status_code,
                    request_body,
                    time.perf_counter() - start_time,
                )
            )
        return response
