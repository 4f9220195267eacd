from contextlib import asynccontextmanager
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
import logging
from clinicforms.config import settings
from sqlmodel import Session
from clinicforms.deps import engine, init_db
from clinicforms.services.templates import seed_templates
from clinicforms.logging_config import setup_logging
from clinicforms import errors
from clinicforms.routers import businesses, clients, export, forms, invites, reports, submissions, team

setup_logging()
logger = logging.getLogger(__name__)

@asynccontextmanager
async def lifespan(app: FastAPI):
    init_db()
    with Session(engine) as session:
        seed_templates(session)
    yield

app = FastAPI(title="ClinicForms", version="1.0.0", lifespan=lifespan)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_allow_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# (status, title) per error type; the first matching class wins
_ERROR_STATUS = [
    (errors.SubmissionValidationError, 422, "Validation Error"),
    (errors.SchemaError, 422, "Invalid Form"),
    (errors.SubmissionDataError, 422, "Invalid Answers"),
    (errors.ReadOnlyControlError, 409, "Read Only"),
    (errors.SubmissionStateError, 409, "Invalid State"),
    (errors.InviteError, 409, "Invite Unavailable"),
    (errors.PermissionDenied, 403, "Forbidden"),
    (errors.LimitReachedError, 402, "Limit Reached"),
    (errors.NotFound, 404, "Not Found"),
    (errors.UpstreamFailure, 503, "Export Failed"),
]

@app.exception_handler(errors.EmptyResultError)
def empty_result(request: Request, exc: errors.EmptyResultError):
    return JSONResponse(status_code=200, content={"title": "No Data", "notice": str(exc), "rows": 0})

@app.exception_handler(errors.ClinicFormsError)
def clinicforms_error(request: Request, exc: errors.ClinicFormsError):
    for cls, status, title in _ERROR_STATUS:
        if isinstance(exc, cls):
            break
    else:
        status, title = 500, "Error"
    if status >= 500:
        logger.error("%s %s failed: %s", request.method, request.url.path, exc)
    body = {"title": title, "detail": str(exc)}
    if isinstance(exc, errors.SubmissionValidationError):
        body["missing_fields"] = exc.missing_labels
    return JSONResponse(status_code=status, content=body)

@app.get("/healthz")
def healthz():
    return {"status": "ok"}

app.include_router(businesses.router, prefix="/businesses", tags=["businesses"])
app.include_router(forms.router, prefix="/forms", tags=["forms"])
app.include_router(clients.router, prefix="/clients", tags=["clients"])
app.include_router(submissions.router, prefix="/submissions", tags=["submissions"])
app.include_router(team.router, prefix="/team", tags=["team"])
app.include_router(export.router, prefix="/export", tags=["export"])
app.include_router(invites.router, prefix="/invites", tags=["invites"])
app.include_router(reports.router, prefix="/reports", tags=["reports"])
