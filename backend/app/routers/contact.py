import json
import logging
from email.utils import formataddr
from typing import Callable

from fastapi import APIRouter, Depends, Request, Response
from fastapi.exception_handlers import http_exception_handler
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from app.services.contact_message import SENDER_NAME, SUBJECT, Submission, render_html, render_text
from app.services.email import ConfigurationError, EmailConfig, EmailService, allowed_origin

log = logging.getLogger("uvicorn.error")

router = APIRouter(prefix="/api", tags=["contact"])

ALL_METHODS = ["GET", "HEAD", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"]
SEND_EMAIL_PATH = "/api/send-email"


def get_email_service() -> Callable[[EmailConfig], EmailService]:
    """Factory used to build a fresh transport per request."""
    return EmailService


def _set_cors(response: Response, origin: str) -> Response:
    response.headers["Access-Control-Allow-Origin"] = origin
    response.headers["Access-Control-Allow-Methods"] = "POST, OPTIONS"
    response.headers["Access-Control-Allow-Headers"] = "Content-Type"
    response.headers["Vary"] = "Origin"
    return response


def _method_not_allowed(origin: str) -> Response:
    return _set_cors(
        JSONResponse(status_code=405, content={"success": False, "error": "Only POST allowed"}),
        origin,
    )


async def method_not_allowed_handler(request: Request, exc: StarletteHTTPException):
    """Answer verbs outside ALL_METHODS on the contact route like the route itself does."""
    if exc.status_code == 405 and request.url.path == SEND_EMAIL_PATH:
        return _method_not_allowed(allowed_origin())
    return await http_exception_handler(request, exc)


async def _read_body(request: Request):
    """Return the submitted fields; bodies that are not JSON or a form count as empty."""
    content_type = request.headers.get("content-type", "").split(";")[0].strip().lower()
    if content_type == "application/json":
        raw = await request.body()
        if not raw:
            return {}
        try:
            return json.loads(raw)
        except ValueError:
            return {}
    if content_type in ("application/x-www-form-urlencoded", "multipart/form-data"):
        form = await request.form()
        return {key: value for key, value in form.items() if isinstance(value, str)}
    return {}


@router.api_route("/send-email", methods=ALL_METHODS)
async def send_email(
    request: Request,
    service_factory: Callable[[EmailConfig], EmailService] = Depends(get_email_service),
):
    """Relay a contact form submission (name, phone, message) to the configured mailbox.

    Expects a JSON object (or form) body; missing fields are rendered as "-".
    """
    origin = allowed_origin()

    if request.method == "OPTIONS":
        return _set_cors(Response(status_code=204), origin)

    if request.method != "POST":
        return _method_not_allowed(origin)

    try:
        submission = Submission.from_body(await _read_body(request))

        try:
            cfg = EmailConfig.from_env().require()
        except ConfigurationError as e:
            log.error("Missing SMTP or recipient configuration")
            return _set_cors(JSONResponse(status_code=500, content={"success": False, "error": str(e)}), origin)

        svc = service_factory(cfg)
        info = await svc.send_email_async(
            to_addresses=cfg.recipients,
            subject=SUBJECT,
            body=render_text(submission),
            html=render_html(submission),
            from_address=formataddr((SENDER_NAME, cfg.smtp_user)),
        )
        log.info("Email sent: %s", info)
        return _set_cors(JSONResponse(status_code=200, content={"success": True}), origin)
    except Exception as e:
        log.exception("Send error: %s", e)
        return _set_cors(JSONResponse(status_code=500, content={"success": False, "error": str(e)}), origin)
