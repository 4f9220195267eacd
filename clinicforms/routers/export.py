from fastapi import APIRouter, Depends, HTTPException
from fastapi.responses import FileResponse, Response
from sqlmodel import Session
from typing import Optional
from datetime import date, datetime, timedelta, timezone
import os
from clinicforms.config import settings
from clinicforms.deps import get_session, get_context, AppContext
from clinicforms.services import exports, export_docx
from clinicforms.services.capabilities import Action

router = APIRouter()

def _csv_response(result: exports.CsvExport) -> Response:
    filename, content, count = result
    return Response(content=content, media_type="text/csv; charset=utf-8",
                    headers={"Content-Disposition": f'attachment; filename="{filename}"',
                             "X-Export-Rows": str(count)})

@router.get("/submissions.csv")
def all_submissions(days: Optional[int] = None, session: Session = Depends(get_session),
                    ctx: AppContext = Depends(get_context)):
    ctx.require(Action.export_data)
    days = settings.DEFAULT_EXPORT_DAYS if days is None else days
    return _csv_response(exports.export_all_submissions(session, ctx.business_id, days))

@router.get("/clients.csv")
def all_clients(session: Session = Depends(get_session), ctx: AppContext = Depends(get_context)):
    ctx.require(Action.export_data)
    return _csv_response(exports.export_clients(session, ctx.business_id))

@router.get("/forms/{form_id}.csv")
def form_submissions(form_id: str, simplified: bool = False, session: Session = Depends(get_session),
                     ctx: AppContext = Depends(get_context)):
    ctx.require(Action.export_data)
    build = exports.export_form_simplified if simplified else exports.export_form_submissions
    return _csv_response(build(session, ctx.business_id, form_id))

@router.get("/clients/{client_id}.csv")
def client_submissions(client_id: str, session: Session = Depends(get_session), ctx: AppContext = Depends(get_context)):
    ctx.require(Action.export_data)
    return _csv_response(exports.export_client_submissions(session, ctx.business_id, client_id))

@router.get("/pivot.csv")
def pivot(start: Optional[date] = None, end: Optional[date] = None, form_id: Optional[str] = None,
          session: Session = Depends(get_session), ctx: AppContext = Depends(get_context)):
    ctx.require(Action.export_data)
    end = end or datetime.now(timezone.utc).date()
    start = start or end - timedelta(days=settings.DEFAULT_EXPORT_DAYS)
    if start > end:
        raise HTTPException(status_code=422, detail="start must not be after end")
    return _csv_response(exports.export_pivot(session, ctx.business_id, start, end, form_id))

@router.post("/submissions/{submission_id}/docx")
def submission_docx(submission_id: str, session: Session = Depends(get_session), ctx: AppContext = Depends(get_context)):
    ctx.require(Action.export_data)
    outpath = export_docx.build_doc(exports.load_submission(session, ctx.business_id, submission_id))
    return {"downloadUrl": f"/export/files/{os.path.basename(outpath)}"}

@router.get("/files/{name}")
def download(name: str, session: Session = Depends(get_session), ctx: AppContext = Depends(get_context)):
    name = os.path.basename(name)
    submission_id, ext = os.path.splitext(name)
    if ext != ".docx":
        raise HTTPException(status_code=404, detail="export not found")
    # only the owning business may fetch a submission document
    exports.load_submission(session, ctx.business_id, submission_id)
    path = os.path.join(settings.EXPORT_DIR, name)
    if not os.path.exists(path):
        raise HTTPException(status_code=404, detail="export not found")
    return FileResponse(path, filename=os.path.basename(path))
