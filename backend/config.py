import os
from dotenv import load_dotenv

load_dotenv()


class Settings:
    # Server
    HOST: str = os.getenv("HOST", "0.0.0.0")
    PORT: int = int(os.getenv("PORT", 8015))
    DEBUG: bool = os.getenv("DEBUG", "False").lower() == "true"
    LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO").upper()

    # Database
    DATABASE_URL: str = os.getenv("DATABASE_URL", "sqlite:///./disparador.db")

    # Security
    SECRET_KEY: str = os.getenv("SECRET_KEY", "change-me-in-production")
    ALGORITHM: str = os.getenv("ALGORITHM", "HS256")
    ACCESS_TOKEN_EXPIRE_MINUTES: int = int(os.getenv("ACCESS_TOKEN_EXPIRE_MINUTES", 30))

    # Redis (fila do arq)
    REDIS_URL: str = os.getenv("REDIS_URL", "redis://localhost:6379/0")

    # Gateway WhatsApp (API compatível com WAHA)
    WHATSAPP_API_URL: str = os.getenv("WHATSAPP_API_URL", "http://localhost:3000")
    WHATSAPP_API_KEY: str = os.getenv("WHATSAPP_API_KEY", "")
    WHATSAPP_TIMEOUT: float = float(os.getenv("WHATSAPP_TIMEOUT", 30))
    WHATSAPP_WEBHOOK_URL: str = os.getenv("WHATSAPP_WEBHOOK_URL", "")
    WEBHOOK_SECRET: str = os.getenv("WEBHOOK_SECRET", "")

    # Uploads
    UPLOAD_DIR: str = os.getenv("UPLOAD_DIR", "uploads")
    MAX_UPLOAD_MB: int = int(os.getenv("MAX_UPLOAD_MB", 16))

    # Envio em massa
    MAX_DESTINATARIOS_TEXTO: int = int(os.getenv("MAX_DESTINATARIOS_TEXTO", 100))
    MAX_DESTINATARIOS_MIDIA: int = int(os.getenv("MAX_DESTINATARIOS_MIDIA", 50))

    # Ciclo de vida das contas
    RECONEXAO_DELAY_SEGUNDOS: float = float(os.getenv("RECONEXAO_DELAY_SEGUNDOS", 1.0))
    SINCRONIZACAO_INTERVALO_MINUTOS: int = int(os.getenv("SINCRONIZACAO_INTERVALO_MINUTOS", 5))


settings = Settings()
