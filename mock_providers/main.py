from fastapi import FastAPI, HTTPException
from pydantic import BaseModel
import re

app = FastAPI(title="Mock Verification Providers", version="1.0.0")

PAN_PATTERN = re.compile(r"^[A-Z]{5}[0-9]{4}[A-Z]$")

# Statement personas, selected by a "persona:<name>" marker in the statement text
STATEMENTS = {
    "good": {
        "avgMonthlyBalance": 80000, "salaryCredits": 65000, "existingEmis": 1, "emiAmount": 10000,
        "bounces": 0, "negativeBalanceDays": 0, "incomeStabilityScore": 92,
        "summary": "Consistent salary with zero bounces.",
    },
    "overdraft": {
        "avgMonthlyBalance": 0, "salaryCredits": 0, "existingEmis": 3, "emiAmount": 8000,
        "bounces": 1, "negativeBalanceDays": 5, "incomeStabilityScore": 20,
        "summary": "Frequent overdrafts and a NACH bounce.",
    },
    "thin": {
        "avgMonthlyBalance": 12000, "salaryCredits": 0, "existingEmis": 0, "emiAmount": 0,
        "bounces": 0, "negativeBalanceDays": 0, "incomeStabilityScore": 55,
        "summary": "Limited history, irregular credits.",
    },
}


class StatementRequest(BaseModel):
    text: str


class IdRequest(BaseModel):
    key: str = ""
    id_number: str


class LivenessRequest(BaseModel):
    image: str


@app.get("/health")
def health(): return {"status": "ok"}


@app.post("/analyze-statement")
def analyze_statement(body: StatementRequest):
    match = re.search(r"persona:(\w+)", body.text)
    persona = match.group(1) if match else "good"
    if persona not in STATEMENTS:
        raise HTTPException(status_code=404, detail="persona not found")
    return {"success": True, "data": STATEMENTS[persona]}


@app.post("/api/v1/pan/pan_advance")
def pan_advance(body: IdRequest):
    if not PAN_PATTERN.match(body.id_number) or body.id_number.startswith("FAILS"):
        return {"status": "failed", "message": "PAN not found"}
    return {"status": "success", "data": {"full_name": "MOCK VERIFIED USER"}}


@app.post("/api/v1/aadhaar/verify")
def aadhaar_verify(body: IdRequest):
    # Numbers ending in 9 fail UIDAI authentication
    if body.id_number.endswith("9"):
        return {"status": "failed", "message": "UIDAI Authentication Failed."}
    return {"status": "success"}


@app.post("/liveness")
def liveness(body: LivenessRequest):
    if "screen" in body.image:
        return {"isLive": False, "confidenceScore": 18, "reasoning": "Moire pattern from a screen."}
    return {"isLive": True, "confidenceScore": 96, "reasoning": "Natural skin texture and depth."}
