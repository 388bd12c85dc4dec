"""Configuration management for the planner API."""
import os
from datetime import timedelta

from dotenv import load_dotenv

load_dotenv()

DEFAULT_CORS_ORIGINS = 'http://localhost:5173,http://localhost:5174'


def _split_origins(raw):
    return [o.strip() for o in (raw or '').split(',') if o.strip()]


class Config:
    """Application configuration read from the environment."""

    def __init__(self, **overrides):
        self.SECRET_KEY = os.environ.get('SECRET_KEY', 'dev-insecure-secret-key-change-me-now')
        self.JWT_SECRET_KEY = os.environ.get('JWT_SECRET_KEY') or self.SECRET_KEY
        self.SQLALCHEMY_DATABASE_URI = os.environ.get('DATABASE_URL') or 'sqlite:///planner.db'
        self.SQLALCHEMY_TRACK_MODIFICATIONS = False
        self.CORS_ORIGINS = _split_origins(os.environ.get('CORS_ORIGINS', DEFAULT_CORS_ORIGINS))
        self.PORT = int(os.environ.get('PORT', 5000))
        hours = float(os.environ.get('TOKEN_EXPIRES_HOURS', 24))
        self.JWT_ACCESS_TOKEN_EXPIRES = timedelta(hours=hours)
        self.API_PREFIX = os.environ.get('API_PREFIX', '').rstrip('/')
        self.LOG_LEVEL = os.environ.get('LOG_LEVEL', 'INFO').upper()
        for key, value in overrides.items():
            setattr(self, key, value)

    def as_dict(self):
        return {k: v for k, v in vars(self).items() if k.isupper()}
