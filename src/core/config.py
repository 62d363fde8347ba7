import os
from typing import Optional
from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic import Field
from dotenv import load_dotenv


# ==========================================================
# 1) Cargar .env raíz
# ==========================================================
load_dotenv(".env")
DEPLOY_ENV = os.getenv("DEPLOY_ENV", "prod").lower()

# ==========================================================
# 2) Cargar .env del entorno
# ==========================================================
ENV_PATH = f"DevOps/{DEPLOY_ENV}/.env"
load_dotenv(ENV_PATH, override=True)


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=ENV_PATH,
        extra="allow"
    )

    # =========================
    #  App
    # =========================
    deploy_env: str = Field("prod", env="DEPLOY_ENV")
    app_name: str = Field("plate-ocr-gateway", env="APP_NAME")
    app_env: str = Field("prod", env="APP_ENV")
    app_port: int = Field(8000, env="APP_PORT")
    log_level: str = Field("INFO", env="LOG_LEVEL")

    # =========================
    #  Proveedor OCR
    # =========================
    # None -> modo demo (sin proveedor real configurado)
    ocr_provider: Optional[str] = Field(None, env="OCR_PROVIDER")
    ocr_langs: str = Field("ja,en", env="OCR_LANGS")
    ocr_gpu: bool = Field(False, env="OCR_GPU")
    ocr_provider_timeout: float = Field(15.0, env="OCR_PROVIDER_TIMEOUT")
    # Google Cloud Vision: sin esto se usan las credenciales por defecto (GOOGLE_APPLICATION_CREDENTIALS)
    google_credentials_base64: Optional[str] = Field(None, env="GOOGLE_APPLICATION_CREDENTIALS_BASE64")

    # =========================
    #  Cache de resultados
    # =========================
    ocr_cache_ttl: float = Field(300.0, env="OCR_CACHE_TTL")

    # =========================
    #  Cuota diaria
    # =========================
    ocr_daily_quota: int = Field(33, env="OCR_DAILY_QUOTA")
    ocr_quota_enforce: bool = Field(False, env="OCR_QUOTA_ENFORCE")

    # =========================
    #  Validación previa
    # =========================
    image_min_width: int = Field(200, env="IMAGE_MIN_WIDTH")
    image_min_height: int = Field(100, env="IMAGE_MIN_HEIGHT")
    image_min_brightness: float = Field(30.0, env="IMAGE_MIN_BRIGHTNESS")
    image_max_brightness: float = Field(240.0, env="IMAGE_MAX_BRIGHTNESS")
    blur_threshold: float = Field(10.0, env="BLUR_THRESHOLD")

    # =========================
    #  Preprocesado
    # =========================
    preprocess_enabled: bool = Field(True, env="PREPROCESS_ENABLED")
    preprocess_max_width: int = Field(1280, env="PREPROCESS_MAX_WIDTH")
    preprocess_max_height: int = Field(720, env="PREPROCESS_MAX_HEIGHT")
    upload_max_bytes: int = Field(10 * 1024 * 1024, env="UPLOAD_MAX_BYTES")

    # =========================
    #  Batch
    # =========================
    batch_max_size: int = Field(10, env="BATCH_MAX_SIZE")

    # =========================
    #  Costes
    # =========================
    cost_free_quota: int = Field(1000, env="COST_FREE_QUOTA")
    cost_price_per_image: float = Field(5.18, env="COST_PRICE_PER_IMAGE")
    cost_currency: str = Field("JPY", env="COST_CURRENCY")
    cost_assumed_daily_images: int = Field(100, env="COST_ASSUMED_DAILY_IMAGES")

    # =========================
    #  Monitoring
    # =========================
    prometheus_port: int = Field(9100, env="PROMETHEUS_PORT")

    @property
    def ocr_lang_list(self) -> list[str]:
        return [lang.strip() for lang in self.ocr_langs.split(",") if lang.strip()]


settings = Settings()
