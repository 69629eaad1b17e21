from fastapi import FastAPI, HTTPException
from fastapi.responses import JSONResponse
from pathlib import Path
import json
import os

app = FastAPI(title="Mock Catalog Server", version="1.0.0")
# Support both local development and Docker
DATA_DIR = Path("/catalog_stub") if os.path.exists("/catalog_stub") else Path(__file__).resolve().parents[1] / "catalog_stub"

@app.get("/health")
def health(): return {"status": "ok"}

@app.get("/catalog")
def get_catalog():
    file = DATA_DIR / "catalog.json"
    if not file.exists():
        raise HTTPException(status_code=404, detail="catalog not found")
    return JSONResponse(content=json.loads(file.read_text()))
