import os


class Config:
    # Environment
    FLASK_ENV = os.getenv('FLASK_ENV', 'development')

    SECRET_KEY = os.getenv('SECRET_KEY', 'dev-secret-key-change-in-production')
    SQLALCHEMY_DATABASE_URI = os.getenv('DATABASE_URL', 'sqlite:///oneflow_sync.db')
    SQLALCHEMY_TRACK_MODIFICATIONS = False

    LOG_LEVEL = os.getenv('LOG_LEVEL', 'INFO')

    # Oneflow configuration
    ONEFLOW_API_URL = os.getenv('ONEFLOW_API_URL', 'https://api.oneflow.com/v1')
    ONEFLOW_API_TOKEN = os.getenv('ONEFLOW_API_TOKEN')
    ONEFLOW_USER_EMAIL = os.getenv('ONEFLOW_USER_EMAIL')
    # Unset disables webhook signature verification (development only)
    ONEFLOW_WEBHOOK_SECRET = os.getenv('ONEFLOW_WEBHOOK_SECRET')
    ONEFLOW_TIMEOUT = int(os.getenv('ONEFLOW_TIMEOUT', 30))


class TestConfig(Config):
    TESTING = True
    SQLALCHEMY_DATABASE_URI = 'sqlite:///:memory:'
    ONEFLOW_API_TOKEN = 'test-token'
    ONEFLOW_USER_EMAIL = 'sync@test.com'
    ONEFLOW_WEBHOOK_SECRET = 'test-secret'
