"""Allow ``python -m src.req_coverage``."""
from src.req_coverage.cli import app

app()
