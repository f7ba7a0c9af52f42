#!/usr/bin/env python3
"""
PPG Vital Signs Measurement Service - Main Entry Point
=======================================================
Launches the FastAPI backend with Uvicorn.
Run with:  python main.py

⚠️  DISCLAIMER: This is a WELLNESS ESTIMATION tool, NOT a medical device.
    All readings (HR, HRV, SpO2, respiration, stress) are ESTIMATES derived
    from camera photoplethysmography and simple heuristics.
    Do NOT use these readings for clinical diagnosis or treatment decisions.
"""

import uvicorn

from api.app import create_app
from config import API_HOST, API_PORT

if __name__ == "__main__":
    app = create_app()
    uvicorn.run(
        app,
        host=API_HOST,
        port=API_PORT,
        reload=False,
        log_level="info",
    )
