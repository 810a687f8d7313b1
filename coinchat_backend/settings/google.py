import os

# --------------------------------
# Google Play 결제 검증
# --------------------------------
GOOGLE_PLAY_PACKAGE_NAME = os.getenv("GOOGLE_PLAY_PACKAGE_NAME", "")
GOOGLE_PLAY_SERVICE_ACCOUNT_FILE = os.getenv("GOOGLE_PLAY_SERVICE_ACCOUNT_FILE", "")
GOOGLE_PLAY_TIMEOUT = int(os.getenv("GOOGLE_PLAY_TIMEOUT", "15"))

# --------------------------------
# 봇 자동응답 (Gemini)
# --------------------------------
GEMINI_API_KEY = os.getenv("GEMINI_API_KEY", "")
GEMINI_MODEL = os.getenv("GEMINI_MODEL", "gemini-1.5-flash")
GEMINI_TIMEOUT = int(os.getenv("GEMINI_TIMEOUT", "20"))

# --------------------------------
# AdMob SSV 공개키 (key_id -> PEM)
# --------------------------------
ADMOB_PUBLIC_KEYS = {
    "3335741209": """-----BEGIN PUBLIC KEY-----
MFkwEwYHKoZIzj0CAQYIKoZIzj0DAQcDQgAE+nzvoGqvDeB9+SzE6igTl7TyK4JB
bglwir9oTcQta8NuG26ZpZFxt+F2NDk7asTE6/2Yc8i1ATcGIqtuS5hv0Q==
-----END PUBLIC KEY-----""",
}
SKIP_ADMOB_SIGNATURE_VERIFICATION = os.getenv("SKIP_ADMOB_SIGNATURE_VERIFICATION", "false").lower() == "true"
