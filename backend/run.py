#!/usr/bin/env python3
# backend/run.py
"""
Development API runner.

Points the app at the test database profile so local experiments never
touch the primary database.
"""
import os
from pathlib import Path
import sys

# Add backend to path
backend_dir = Path(__file__).parent
sys.path.insert(0, str(backend_dir))
os.chdir(backend_dir)

os.environ.setdefault("IS_TESTING", "true")
os.environ.setdefault("TEST_DATABASE_URL", f"sqlite+pysqlite:///{backend_dir / 'resort_dev.db'}")

import uvicorn

if __name__ == "__main__":
    print("🚀 Starting resort API with the local SQLite database...")
    print("🌐 Access at: http://localhost:8000")
    print("📚 API Docs: http://localhost:8000/docs")

    uvicorn.run("app.main:app", host="0.0.0.0", port=8000, reload=True, log_level="info")
