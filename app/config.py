"""
Configuration settings for Talk-to-My-Lawyer Backend
"""

from pydantic import BaseModel
from pydantic_settings import BaseSettings
from typing import Dict, List


TENANTS = ("admin", "user", "remote_employee")


class TenantConfig(BaseModel):
    """Connection details for one tenant database"""

    host: str
    port: int
    database: str
    user: str
    password: str
    tenant_id: str


class Settings(BaseSettings):
    """Application settings loaded from environment variables"""

    # Server Configuration
    APP_NAME: str = "Talk-to-My-Lawyer API"
    APP_VERSION: str = "1.0.0"
    DEBUG: bool = False
    HOST: str = "0.0.0.0"
    PORT: int = 3001
    ENVIRONMENT: str = "development"
    LOG_LEVEL: str = "INFO"

    # JWT Configuration
    JWT_SECRET_KEY: str = ""
    JWT_ALGORITHM: str = "HS256"
    JWT_ISSUER: str = "talk-to-my-lawyer"
    JWT_AUDIENCE: str = "talk-to-my-lawyer-users"
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 60 * 24 * 7
    REFRESH_TOKEN_EXPIRE_DAYS: int = 30

    # Password & lockout policy
    BCRYPT_ROUNDS: int = 12
    MAX_LOGIN_ATTEMPTS: int = 5
    LOCKOUT_TIME_MINUTES: int = 15
    PASSWORD_RESET_EXPIRES_MINUTES: int = 60

    # Rate limiting (slowapi / limits notation)
    RATE_LIMIT_ENABLED: bool = True
    API_RATE_LIMIT: str = "100/15minutes"
    AUTH_RATE_LIMIT: str = "10/15minutes"
    PASSWORD_RESET_RATE_LIMIT: str = "3/hour"
    ACCOUNT_RATE_LIMIT: str = "5/15minutes"
    MAX_REQUEST_SIZE_BYTES: int = 1024 * 1024

    # Tenant databases
    ADMIN_DB_HOST: str = ""
    ADMIN_DB_PORT: int = 5432
    ADMIN_DB_NAME: str = ""
    ADMIN_DB_USER: str = ""
    ADMIN_DB_PASSWORD: str = ""
    ADMIN_TENANT_ID: str = ""

    USER_DB_HOST: str = ""
    USER_DB_PORT: int = 5432
    USER_DB_NAME: str = ""
    USER_DB_USER: str = ""
    USER_DB_PASSWORD: str = ""
    USER_TENANT_ID: str = ""

    EMPLOYEE_DB_HOST: str = ""
    EMPLOYEE_DB_PORT: int = 5432
    EMPLOYEE_DB_NAME: str = ""
    EMPLOYEE_DB_USER: str = ""
    EMPLOYEE_DB_PASSWORD: str = ""
    EMPLOYEE_TENANT_ID: str = ""

    DB_POOL_MAX: int = 10
    DB_CONNECT_TIMEOUT: int = 2
    # Nile requires SSL
    DB_SSLMODE: str = "require"

    # Email Configuration
    SMTP_HOST: str = ""
    SMTP_PORT: int = 587
    SMTP_USER: str = ""
    SMTP_PASSWORD: str = ""
    SMTP_USE_TLS: bool = True
    FROM_NAME: str = "Talk-to-My-Lawyer"
    FROM_EMAIL: str = "noreply@talk-to-my-lawyer.com"
    SUPPORT_EMAIL: str = "support@talk-to-my-lawyer.com"
    CLIENT_URL: str = "http://localhost:5173"

    # Referral economics
    COMMISSION_RATE: float = 0.05
    REFERRAL_DISCOUNT_RATE: float = 0.20

    # CORS Configuration
    ALLOWED_ORIGINS: str = "http://localhost:3000,https://localhost:3000,http://localhost:5173,https://localhost:5173"
    # Preview hosts (WebContainer, StackBlitz, bolt.new) and local addresses
    ALLOWED_ORIGIN_REGEX: str = (
        r"https?://(.*\.webcontainer\.io|.*\.stackblitz\.io|.*bolt\.new|localhost|127\.0\.0\.1)(:\d+)?"
    )

    @property
    def allowed_origins_list(self) -> List[str]:
        """Convert comma-separated origins to list"""
        origins = [origin.strip()
                   for origin in self.ALLOWED_ORIGINS.split(",") if origin.strip()]
        if self.CLIENT_URL and self.CLIENT_URL not in origins:
            origins.append(self.CLIENT_URL)
        return origins

    @property
    def is_production(self) -> bool:
        return self.ENVIRONMENT.lower() == "production"

    @property
    def tenant_configs(self) -> Dict[str, TenantConfig]:
        """Connection settings keyed by tenant name"""
        return {
            "admin": TenantConfig(
                host=self.ADMIN_DB_HOST,
                port=self.ADMIN_DB_PORT,
                database=self.ADMIN_DB_NAME,
                user=self.ADMIN_DB_USER,
                password=self.ADMIN_DB_PASSWORD,
                tenant_id=self.ADMIN_TENANT_ID,
            ),
            "user": TenantConfig(
                host=self.USER_DB_HOST,
                port=self.USER_DB_PORT,
                database=self.USER_DB_NAME,
                user=self.USER_DB_USER,
                password=self.USER_DB_PASSWORD,
                tenant_id=self.USER_TENANT_ID,
            ),
            "remote_employee": TenantConfig(
                host=self.EMPLOYEE_DB_HOST,
                port=self.EMPLOYEE_DB_PORT,
                database=self.EMPLOYEE_DB_NAME,
                user=self.EMPLOYEE_DB_USER,
                password=self.EMPLOYEE_DB_PASSWORD,
                tenant_id=self.EMPLOYEE_TENANT_ID,
            ),
        }

    model_config = {"env_file": ".env",
                    "case_sensitive": True, "extra": "allow"}


# Global settings instance
settings = Settings()
