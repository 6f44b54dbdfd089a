import logging
import os

from dotenv import load_dotenv
from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from analyzer import AnalysisOrchestrator
from exceptions import IncompleteAssessmentError, UnknownVendorError
from framework_scorer import export_artifact, rollup_objectives
from models import (
    AnswerUpdate, ChecklistAnalyzeRequest, ChecklistResult, ExportArtifact, FrameworkAnalyzeRequest,
    FrameworkAnalyzeResponse, FrameworkResponses, HealthResponse, ProgressResponse, ProxyRequest,
    TextUpdate, Vendor, VendorAnswerUpdate, VendorCreate, VendorRisk,
)
from narrative_client import default_client
from proxy import forward
from session import get_session
from validation import validate_checklist, validate_framework
from vendor_risk import calculate_vendor_risk

load_dotenv()

# ── configurable via .env ──
CORS_ORIGINS = os.getenv("CORS_ORIGINS", "*").split(",")
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")

logging.basicConfig(level=LOG_LEVEL, format="%(asctime)s %(levelname)s %(name)s: %(message)s")

app = FastAPI(title="Cyber Readiness Assessor", version="1.0.0")
app.add_middleware(
    CORSMiddleware,
    allow_origins=CORS_ORIGINS, allow_credentials=True,
    allow_methods=["*"], allow_headers=["*"],
)


@app.exception_handler(RequestValidationError)
async def invalid_body(request: Request, exc: RequestValidationError):
    return JSONResponse(
        status_code=400,
        content={"error": "Invalid request body.", "details": jsonable_encoder(exc.errors())},
    )


@app.exception_handler(IncompleteAssessmentError)
async def incomplete_assessment(request: Request, exc: IncompleteAssessmentError):
    return JSONResponse(
        status_code=400,
        content={"error": str(exc), "missing_fields": exc.missing_fields, "answered": exc.answered},
    )


@app.exception_handler(UnknownVendorError)
async def unknown_vendor(request: Request, exc: UnknownVendorError):
    return JSONResponse(status_code=404, content={"error": f"Unknown vendor: {exc.args[0]}"})


def _orchestrator() -> AnalysisOrchestrator:
    return AnalysisOrchestrator(client=default_client())


@app.get("/health", response_model=HealthResponse)
async def health():
    return HealthResponse(status="ok", narrative_proxy=os.getenv("NARRATIVE_PROXY_URL") or None)


# ============== Narrative proxy ==============

@app.post("/api/analyze")
def analyze_proxy(req: ProxyRequest):
    status, body = forward(req)
    return JSONResponse(status_code=status, content=body)


# ============== Stateless assessment endpoints ==============

@app.post("/assessments/checklist/analyze", response_model=ChecklistResult)
def analyze_checklist(req: ChecklistAnalyzeRequest):
    validate_checklist(req.responses)
    return _orchestrator().analyze_checklist(req.responses, req.vendors)


@app.post("/assessments/framework/analyze", response_model=FrameworkAnalyzeResponse)
def analyze_framework(req: FrameworkAnalyzeRequest):
    validate_framework(req.responses)
    scores, result = _orchestrator().analyze_framework(req.responses, req.vendors)
    return FrameworkAnalyzeResponse(scores=scores, objectives=rollup_objectives(scores), result=result)


@app.post("/assessments/framework/export", response_model=ExportArtifact)
async def export_framework(responses: FrameworkResponses):
    return export_artifact(responses)


@app.post("/vendors/risk", response_model=VendorRisk)
async def vendor_risk(vendor: Vendor):
    return calculate_vendor_risk(vendor)


# ============== Session endpoints ==============

def _progress(sid: str, cleared: list[str] | None = None) -> ProgressResponse:
    p = get_session(sid).progress()
    return ProgressResponse(
        session_id=sid, answered=p.answered, total=p.total,
        percent=p.percent, low_completion=p.low_completion, cleared=cleared or [],
    )


@app.post("/sessions/{sid}/answers", response_model=ProgressResponse)
async def record_answer(sid: str, update: AnswerUpdate):
    cleared = get_session(sid).record_answer(update.control, update.question_id, update.value)
    return _progress(sid, cleared)


@app.post("/sessions/{sid}/text", response_model=ProgressResponse)
async def record_text(sid: str, update: TextUpdate):
    get_session(sid).set_text(update.field, update.value)
    return _progress(sid)


@app.get("/sessions/{sid}/progress", response_model=ProgressResponse)
async def session_progress(sid: str):
    return _progress(sid)


@app.post("/sessions/{sid}/vendors", response_model=Vendor)
async def add_vendor(sid: str, req: VendorCreate):
    return get_session(sid).add_vendor(req.name, req.access_level)


@app.post("/sessions/{sid}/vendors/{vendor_id}/answers", response_model=VendorRisk)
async def answer_vendor(sid: str, vendor_id: int, update: VendorAnswerUpdate):
    session = get_session(sid)
    try:
        vendor = session.answer_vendor(vendor_id, update.question_id, update.value)
    except ValueError as e:
        return JSONResponse(status_code=400, content={"error": str(e)})
    return calculate_vendor_risk(vendor)


@app.delete("/sessions/{sid}/vendors/{vendor_id}", status_code=204)
async def delete_vendor(sid: str, vendor_id: int):
    get_session(sid).remove_vendor(vendor_id)


@app.post("/sessions/{sid}/analyze", response_model=ChecklistResult)
def analyze_session(sid: str):
    return get_session(sid).analyze(_orchestrator())


@app.post("/sessions/{sid}/restore", response_model=ProgressResponse)
async def restore_session(sid: str):
    if not get_session(sid).restore_saved():
        return JSONResponse(status_code=404, content={"error": "No saved assessment found."})
    return _progress(sid)
