"""
Vercel entry point for the Support Desk API
"""
import sys
import os

# Add parent directory to path
parent_dir = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
if parent_dir not in sys.path:
    sys.path.insert(0, parent_dir)

# Set environment variables for serverless
os.environ.setdefault("ENVIRONMENT", "production")

from mangum import Mangum
from src.main import app

# Lambda handler for ASGI app (disable lifespan for serverless; clients are created lazily)
handler = Mangum(app, lifespan="off")
