"""CareerCraft multi-agent conversation engine."""
from pathlib import Path

from dotenv import load_dotenv

# Load .env from project root (directory containing careercraft/) so API keys and
# limits are found when running from any directory.
_project_root = Path(__file__).resolve().parent.parent
load_dotenv(_project_root / ".env")
