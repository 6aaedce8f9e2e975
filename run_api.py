#!/usr/bin/env python3
"""Simple script to run the Document Intake Analyzer API"""
import uvicorn

from intake_analyzer.config import configure_logging

if __name__ == "__main__":
    configure_logging()
    uvicorn.run("intake_analyzer.api:app", host="0.0.0.0", port=8000, reload=True)
