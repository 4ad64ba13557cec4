from __future__ import annotations
from pathlib import Path
from pydantic_settings import BaseSettings, SettingsConfigDict

PACKAGE_DIR = Path(__file__).resolve().parent.parent
DEFAULT_CONVERSION_TABLE = PACKAGE_DIR / "data" / "nominatim-to-80211u-conversion-table.csv"


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_prefix="APREG_",
        env_file=".env",
        extra="ignore",
    )

    # Server
    server_bind: str = "0.0.0.0"        # APREG_SERVER_BIND
    server_port: int = 3000             # APREG_SERVER_PORT
    allowed_origins: list[str] = [      # APREG_ALLOWED_ORIGINS (JSON list)
        "http://localhost:8080",
        "http://127.0.0.1:8080",
    ]

    # Auth (None = open registry)
    auth_token: str | None = None       # APREG_AUTH_TOKEN

    # Upstream services
    nominatim_base_url: str = "https://nominatim.openstreetmap.org"  # APREG_NOMINATIM_BASE_URL
    mac_vendor_url: str = "https://api.macvendors.com"               # APREG_MAC_VENDOR_URL
    user_agent: str = "WiFi-Access-Point-Registry/1.0"               # APREG_USER_AGENT
    http_timeout: float = 10.0          # APREG_HTTP_TIMEOUT
    mac_vendor_timeout: float = 5.0     # APREG_MAC_VENDOR_TIMEOUT
    http_retries: int = 3               # APREG_HTTP_RETRIES
    http_backoff: float = 1.5           # APREG_HTTP_BACKOFF

    # Paths
    data_dir: Path = Path("data")                           # APREG_DATA_DIR
    db_path: Path = Path("data/registry.db")                # APREG_DB_PATH
    conversion_table_csv: Path = DEFAULT_CONVERSION_TABLE   # APREG_CONVERSION_TABLE_CSV
    frontend_dir: Path = Path("frontend")                   # APREG_FRONTEND_DIR

    def model_post_init(self, __context) -> None:
        # Resolve paths to absolute and create the data folders if missing
        data_dir = Path(self.data_dir).expanduser().resolve()
        db_path = Path(self.db_path).expanduser()
        table_csv = Path(self.conversion_table_csv).expanduser()
        frontend_dir = Path(self.frontend_dir).expanduser()

        if not db_path.is_absolute():
            db_path = (Path.cwd() / db_path).resolve()
        if not table_csv.is_absolute():
            table_csv = (Path.cwd() / table_csv).resolve()
        if not frontend_dir.is_absolute():
            frontend_dir = (Path.cwd() / frontend_dir).resolve()

        data_dir.mkdir(parents=True, exist_ok=True)
        db_path.parent.mkdir(parents=True, exist_ok=True)

        object.__setattr__(self, "data_dir", data_dir)
        object.__setattr__(self, "db_path", db_path)
        object.__setattr__(self, "conversion_table_csv", table_csv)
        object.__setattr__(self, "frontend_dir", frontend_dir)

settings = Settings()
