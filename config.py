import os
from dotenv import load_dotenv

load_dotenv()

# --- DATABASE ---
DATABASE_URL = os.getenv("DATABASE_URL", f"sqlite:///{os.path.join(os.path.dirname(__file__), 'db', 'gym_pass.db')}")

# --- AUTH ---
# SECRET_KEY should be in env, but for local development we fall back to a fixed value
SECRET_KEY = os.getenv("SECRET_KEY", "dev_secret_key_123")
ALGORITHM = "HS256"
QR_SIGNING_SECRET = os.getenv("QR_SIGNING_SECRET", SECRET_KEY)

# --- PAYMENTS ---
STRIPE_SECRET_KEY = os.getenv("STRIPE_SECRET_KEY")
STRIPE_PUBLISHABLE_KEY = os.getenv("STRIPE_PUBLISHABLE_KEY")
STRIPE_WEBHOOK_SECRET = os.getenv("STRIPE_WEBHOOK_SECRET", "")
WEBHOOK_SIGNATURE_HEADER = "Stripe-Signature"

# --- VALIDATION ---
VALIDATE_RATE_LIMIT = int(os.getenv("VALIDATE_RATE_LIMIT", "30"))
RATE_LIMIT_WINDOW_SECONDS = int(os.getenv("RATE_LIMIT_WINDOW_SECONDS", "60"))

# --- PASS POLICY ---
ALLOW_MULTIPLE_ACTIVE_PASSES = os.getenv("ALLOW_MULTIPLE_ACTIVE_PASSES", "true").lower() in ("1", "true", "yes")

# --- SERVER ---
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()
PORT = int(os.getenv("PORT", 8080))
