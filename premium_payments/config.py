import os
import logging
from typing import Optional
from pydantic import BaseModel, Field, field_validator
from dotenv import load_dotenv

# Загружаем переменные из .env файла (для локального запуска)
load_dotenv()

DEFAULT_PAYTECH_ALLOWED_IPS = "196.1.95.124,41.82.108.82"


class Config(BaseModel):
    """Конфигурация сервиса верификации платежей с валидацией"""

    database_url: str = Field(..., description="PostgreSQL connection URL")
    supabase_url: str = Field(..., description="Supabase project URL (auth API)")
    supabase_service_key: str = Field(..., description="Supabase service role key")

    # MoneyFusion настройки (pull-верификация по токену)
    moneyfusion_status_url: str = Field(
        default="https://www.pay.moneyfusion.net/paiementNotif",
        description="MoneyFusion payment status endpoint"
    )

    # PayTech настройки (IPN + проверка по ref_command)
    paytech_api_key: str = Field(..., description="PayTech API key")
    paytech_secret_key: str = Field(..., description="PayTech API secret (also signs IPN)")
    paytech_base_url: str = Field(default="https://paytech.sn/api", description="PayTech API base URL")
    paytech_env: str = Field(default="prod", description="PayTech environment (prod/test)")
    paytech_allowed_ips: list[str] = Field(default_factory=list, description="IPN source whitelist")
    paytech_require_signature: bool = Field(default=True, description="Require HMAC signature on IPN")
    paytech_ipn_url: Optional[str] = Field(default=None, description="Public IPN URL given to PayTech")
    frontend_url: Optional[str] = Field(default=None, description="Frontend URL for redirects")

    gateway_timeout_seconds: float = Field(default=10.0, gt=0, description="Timeout for outbound HTTP calls")
    host: str = Field(default="0.0.0.0", description="HTTP bind host")
    port: int = Field(default=8080, description="HTTP bind port")
    log_level: str = Field(default="INFO", description="Logging level")

    @field_validator('paytech_allowed_ips', mode='before')
    @classmethod
    def parse_allowed_ips(cls, v):
        """Парсит PAYTECH_ALLOWED_IPS из строки в список адресов"""
        if isinstance(v, str):
            return [ip.strip() for ip in v.split(",") if ip.strip()]
        return v

    @field_validator('supabase_url', 'paytech_base_url', 'moneyfusion_status_url')
    @classmethod
    def strip_trailing_slash(cls, v: str) -> str:
        return v.rstrip("/")

    @property
    def ipn_url(self) -> str:
        """URL, на который PayTech отправляет IPN"""
        if self.paytech_ipn_url:
            return self.paytech_ipn_url
        return f"{self.supabase_url}/functions/v1/verify-paytech-payment"

    @property
    def redirect_url(self) -> str:
        """URL фронтенда для success/cancel редиректов"""
        if self.frontend_url:
            return self.frontend_url.rstrip("/")
        return self.supabase_url.replace(".supabase.co", ".lovableproject.com")

    @classmethod
    def from_env(cls) -> "Config":
        """Создает конфиг из переменных окружения с валидацией"""
        db_url = os.getenv("DATABASE_URL")
        supabase_url = os.getenv("SUPABASE_URL")
        supabase_key = os.getenv("SUPABASE_SERVICE_ROLE_KEY")
        paytech_key = os.getenv("PAYTECH_API_KEY")
        paytech_secret = os.getenv("PAYTECH_SECRET_KEY")

        if not db_url:
            raise ValueError("DATABASE_URL не установлен")
        if not supabase_url:
            raise ValueError("SUPABASE_URL не установлен")
        if not supabase_key:
            raise ValueError("SUPABASE_SERVICE_ROLE_KEY не установлен")
        if not paytech_key:
            raise ValueError("PAYTECH_API_KEY не установлен")
        if not paytech_secret:
            raise ValueError("PAYTECH_SECRET_KEY не установлен")

        optional = {
            "moneyfusion_status_url": os.getenv("MONEYFUSION_STATUS_URL"),
            "paytech_base_url": os.getenv("PAYTECH_BASE_URL"),
            "paytech_env": os.getenv("PAYTECH_ENV"),
            "paytech_ipn_url": os.getenv("PAYTECH_IPN_URL"),
            "frontend_url": os.getenv("FRONTEND_URL"),
            "gateway_timeout_seconds": os.getenv("GATEWAY_TIMEOUT_SECONDS"),
            "host": os.getenv("HOST"),
            "port": os.getenv("PORT"),
        }

        return cls(
            database_url=db_url,
            supabase_url=supabase_url,
            supabase_service_key=supabase_key,
            paytech_api_key=paytech_key,
            paytech_secret_key=paytech_secret,
            paytech_allowed_ips=os.getenv("PAYTECH_ALLOWED_IPS", DEFAULT_PAYTECH_ALLOWED_IPS),
            paytech_require_signature=os.getenv("PAYTECH_REQUIRE_SIGNATURE", "True").lower() == "true",
            log_level=os.getenv("LOG_LEVEL", "INFO"),
            **{key: value for key, value in optional.items() if value}
        )


def setup_logging(level: str = "INFO") -> logging.Logger:
    """Настраивает логирование для приложения"""
    logging.basicConfig(
        level=getattr(logging, level.upper()),
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
    )
    return logging.getLogger("premium_payments")
