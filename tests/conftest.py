"""Root conftest: shared test configuration.

Settings are read once at import time, so the environment is fixed here
before any ``src`` module is imported.
"""

import os

# Ensure tests never reach real providers
os.environ.setdefault("ENVIRONMENT", "development")
os.environ.setdefault("MONGODB_URI", "mongodb://localhost:27017/support_test")
os.environ.setdefault("OPENAI_API_KEY", "sk-test-fake-key")
os.environ.setdefault("GEMINI_API_KEY", "gemini-test-fake-key")
os.environ.setdefault("SENDGRID_API_KEY", "SG.test-fake-key")
os.environ.setdefault("SUPPORT_INBOX_EMAIL", "support@example.test")
os.environ.setdefault("EMAIL_FROM", "no-reply@example.test")
os.environ["MOCK_LLM"] = "false"
