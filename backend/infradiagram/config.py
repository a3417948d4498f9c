import logging
import os
from dotenv import load_dotenv

# Load .env from project root
load_dotenv()


def _bool_env(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None:
        return default
    return raw.strip().lower() in ("1", "true", "yes", "on")


# Layout defaults
LAYOUT_DIRECTION = os.getenv("LAYOUT_DIRECTION", "LR")
LAYOUT_NODE_SPACING = int(os.getenv("LAYOUT_NODE_SPACING", "70"))
LAYOUT_RANK_SPACING = int(os.getenv("LAYOUT_RANK_SPACING", "100"))
LAYOUT_MARGIN_X = int(os.getenv("LAYOUT_MARGIN_X", "20"))
LAYOUT_MARGIN_Y = int(os.getenv("LAYOUT_MARGIN_Y", "20"))

# Diagram store
DIAGRAM_STORE_CAPACITY = int(os.getenv("DIAGRAM_STORE_CAPACITY", "128"))

# When false, non-positional node updates keep the current coordinates
RELAYOUT_ON_UPDATE = _bool_env("RELAYOUT_ON_UPDATE", True)

# Code generation
CODEGEN_FILE_EXTENSION = os.getenv("CODEGEN_FILE_EXTENSION", "tf")
CODEGEN_TERRAFORM_BLOCK = _bool_env("CODEGEN_TERRAFORM_BLOCK", False)
EXPORT_ROOT = os.getenv("EXPORT_ROOT", "./generated")

# Enhancer (OpenAI-compatible chat completions). Empty base URL disables it.
ENHANCER_BASE_URL = os.getenv("ENHANCER_BASE_URL", "")
ENHANCER_MODEL = os.getenv("ENHANCER_MODEL", "gpt-4o")
ENHANCER_API_KEY = os.getenv("ENHANCER_API_KEY", "")
ENHANCER_TIMEOUT = float(os.getenv("ENHANCER_TIMEOUT", "60"))

# HTTP
CORS_ORIGINS = [
    origin.strip()
    for origin in os.getenv("CORS_ORIGINS", "http://localhost:5173").split(",")
    if origin.strip()
]

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")


def configure_logging(level: str = LOG_LEVEL) -> None:
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s %(message)s",
    )
