# Bu araç @keyiflerolsun tarafından | @KekikAkademi için yazılmıştır.

from pathlib import Path
from yaml    import load, FullLoader
from dotenv  import load_dotenv
import os

PROJE_DIZINI = Path(__file__).resolve().parent.parent

# .env yükleme
env_path = PROJE_DIZINI / ".env"
load_dotenv(dotenv_path=env_path)

# AYAR.yml yükleme
with open(PROJE_DIZINI / "AYAR.yml", "r", encoding="utf-8") as yaml_dosyasi:
    AYAR = load(yaml_dosyasi, Loader=FullLoader)

# Genel ayarlar
PRODUCTION = os.getenv("PRODUCTION", "false").lower() == "true"

PROJE = AYAR["PROJE"]
HOST  = AYAR["APP"]["HOST"]
PORT  = AYAR["APP"]["PORT"]

# Paylaşım linki için dış adres
PUBLIC_URL = os.getenv("PUBLIC_URL", f"http://127.0.0.1:{PORT}/")

# Watch Party senkronizasyon ayarları
_WP = AYAR.get("WATCH_PARTY", {})

MAX_PARTICIPANTS    = int(_WP.get("MAX_PARTICIPANTS", 4))
MESSAGE_LIMIT       = int(_WP.get("MESSAGE_LIMIT", 100))
SYNC_INTERVAL       = float(_WP.get("SYNC_INTERVAL", 5.0))
DRIFT_TOLERANCE     = float(_WP.get("DRIFT_TOLERANCE", 2.0))
MASTER_WINDOW       = float(_WP.get("MASTER_WINDOW", 1.0))
TYPING_TIMEOUT      = float(_WP.get("TYPING_TIMEOUT", 2.0))
EMBED_READY_TIMEOUT = float(_WP.get("EMBED_READY_TIMEOUT", 15.0))
MERGE_ON_WRITE      = os.getenv("MERGE_ON_WRITE", str(_WP.get("MERGE_ON_WRITE", False))).lower() == "true"

# Kaynak kontrolleri (ağ erişimi gerektirir)
PROBE_SOURCES  = os.getenv("PROBE_SOURCES", "false").lower() == "true"
RESOLVE_EMBEDS = os.getenv("RESOLVE_EMBEDS", "false").lower() == "true"

# Paylaşılan depolama
_STORE = AYAR.get("STORE", {})

STORE_BACKEND     = os.getenv("STORE_BACKEND", _STORE.get("BACKEND", "memory")).lower()
STORE_KEY_PREFIX  = _STORE.get("KEY_PREFIX", "watchparty:room:")
STORE_QUOTA_BYTES = int(os.getenv("STORE_QUOTA_BYTES", _STORE.get("QUOTA_BYTES", 5 * 1024 * 1024)))
STORE_TTL         = int(os.getenv("STORE_TTL", _STORE.get("TTL", 0)))
REDIS_URL         = os.getenv("REDIS_URL", "redis://127.0.0.1:6379/0")
