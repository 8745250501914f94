import os
from dataclasses import dataclass
from datetime import timedelta

from dotenv import load_dotenv

load_dotenv()


class Config:
    SQLALCHEMY_TRACK_MODIFICATIONS = False
    ENV = os.getenv("FLASK_ENV", "development")
    LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")

    JWT_SECRET_KEY = os.environ.get("JWT_SECRET_KEY", "dev-secret-change-me")
    JWT_ACCESS_TOKEN_EXPIRES = timedelta(days=1)

    FRONTEND_ORIGIN = os.getenv("FRONTEND_ORIGIN", "*")

    # Razorpay
    RAZORPAY_KEY_ID = os.getenv("RAZORPAY_KEY_ID", "")
    RAZORPAY_KEY_SECRET = os.getenv("RAZORPAY_KEY_SECRET", "")
    RAZORPAY_WEBHOOK_SECRET = os.getenv("RAZORPAY_WEBHOOK_SECRET", "")
    PAYMENT_CURRENCY = os.getenv("PAYMENT_CURRENCY", "INR")

    # Outbound mail (gmail app password by default)
    ADMIN_EMAIL = os.getenv("ADMIN_EMAIL", "")
    ADMIN_EMAIL_APP_PASSWORD = os.getenv("ADMIN_EMAIL_APP_PASSWORD", "")
    SMTP_HOST = os.getenv("SMTP_HOST", "smtp.gmail.com")
    SMTP_PORT = int(os.getenv("SMTP_PORT", "465"))

    @staticmethod
    def init_app(app):
        if not os.getenv("DATABASE_URL"):
            os.makedirs(app.instance_path, exist_ok=True)
            app.config["SQLALCHEMY_DATABASE_URI"] = f"sqlite:///{os.path.join(app.instance_path, 'app.db')}"
        else:
            app.config["SQLALCHEMY_DATABASE_URI"] = os.getenv("DATABASE_URL")


@dataclass(frozen=True)
class PaymentSettings:
    key_id: str = ""
    key_secret: str = ""
    webhook_secret: str = ""
    currency: str = "INR"

    @property
    def enabled(self) -> bool:
        return bool(self.key_id and self.key_secret)

    @classmethod
    def from_config(cls, config) -> "PaymentSettings":
        return cls(
            key_id=config.get("RAZORPAY_KEY_ID") or "",
            key_secret=config.get("RAZORPAY_KEY_SECRET") or "",
            webhook_secret=config.get("RAZORPAY_WEBHOOK_SECRET") or "",
            currency=config.get("PAYMENT_CURRENCY") or "INR",
        )


@dataclass(frozen=True)
class MailSettings:
    sender: str = ""
    password: str = ""
    host: str = "smtp.gmail.com"
    port: int = 465

    @property
    def enabled(self) -> bool:
        return bool(self.sender and self.password)

    @classmethod
    def from_config(cls, config) -> "MailSettings":
        return cls(
            sender=config.get("ADMIN_EMAIL") or "",
            password=config.get("ADMIN_EMAIL_APP_PASSWORD") or "",
            host=config.get("SMTP_HOST") or "smtp.gmail.com",
            port=int(config.get("SMTP_PORT") or 465),
        )
