# varejo-elite/config.py

"""
Central configuration for the Varejo Elite scorecard.
-- Tier rules, seed tables for new stores and environment settings --
"""
import os
from dotenv import load_dotenv

from models import KPICategory, Tier

load_dotenv()

# --- Environment ---
DATABASE_URL = os.getenv("DATABASE_URL", "sqlite:///./varejo_elite.db")
ADMIN_PASSWORD = os.getenv("ADMIN_PASSWORD", "1234")
SESSION_FILE = os.getenv("SESSION_FILE", ".varejo_elite_session.json")

GEMINI_API_KEY = os.getenv("GEMINI_API_KEY")
GEMINI_MODEL = os.getenv("GEMINI_MODEL", "gemini-1.5-flash")
GEMINI_API_BASE = "https://generativelanguage.googleapis.com/v1beta"
ADVISOR_TIMEOUT_SECONDS = float(os.getenv("ADVISOR_TIMEOUT_SECONDS", "30"))

# --- Tier Ladder ---
# Evaluated top-down, first match wins. Thresholds are inclusive.
TIER_THRESHOLDS = [
    (100, Tier.ELITE),
    (90, Tier.GOLD),
    (80, Tier.SILVER),
    (70, Tier.BRONZE),
]

# Completion ratio of a KPI with target 0 and a positive actual.
ZERO_TARGET_RATIO = 1.0

# Largest completion ratio (either sign) a KPI may carry; scoring saturates here.
MAX_COMPLETION_RATIO = 1e6

# --- Seed tables for new stores ---
# Only read by new_store(); scoring always uses the store's own tables.
DEFAULT_REWARDS = {
    Tier.NONE: 0,
    Tier.BRONZE: 500,
    Tier.SILVER: 1000,
    Tier.GOLD: 2500,
    Tier.ELITE: 5000,
}

DEFAULT_TIER_COLORS = {
    Tier.NONE: "#94a3b8",
    Tier.BRONZE: "#cd7f32",
    Tier.SILVER: "#c0c0c0",
    Tier.GOLD: "#ffd700",
    Tier.ELITE: "#00ffff",
}

DEFAULT_KPIS = [
    {"name": "Meta do Trimestre", "category": KPICategory.FINANCE, "target": 100000, "unit": "R$"},
    {"name": "Crescimento vs Ano Anterior", "category": KPICategory.GROWTH, "target": 5, "unit": "%"},
    {"name": "Participação no PDV", "category": KPICategory.MARKET, "target": 30, "unit": "%"},
]

NEW_STORE_CODE_PREFIX = "LOJA-"
NEW_STORE_TEXTS = {
    "razao_social": "Nova Razão Social",
    "fantasia": "Nova Loja",
    "manager": "Novo Gerente",
}

# --- Access Messages ---
ACCESS_MESSAGES = {
    "admin_denied": "Incorrect administrative password. Access denied.",
    "store_not_found": "Invalid store identifier. Check the code and try again.",
    "empty_code": "Enter an access code.",
}
