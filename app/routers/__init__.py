"""
routers/ — FastAPI route modules for Scout.

icp, triage, candidates and enrichment each expose a thin APIRouter that
validates input, calls into services/ or cache/, and shapes the response.
"""
