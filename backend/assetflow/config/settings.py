"""Environment-driven defaults for the application factory.

Values here are read once per ``create_app`` call; tests pass overrides through
``create_app(config=...)`` instead of mutating the environment.
"""
from __future__ import annotations
import os
from typing import Any, Dict

TRUTHY = {'1', 'true', 'yes', 'on'}


def _flag(name: str, default: str) -> bool:
    return os.getenv(name, default).strip().lower() in TRUTHY


def load_settings() -> Dict[str, Any]:
    broker_url = os.getenv('CELERY_BROKER_URL', 'memory://')
    return {
        'JWT_SECRET_KEY': os.getenv('JWT_SECRET_KEY', 'dev-secret'),
        'DATABASE_URL': os.getenv('DATABASE_URL', 'sqlite:///dev.db'),
        'LOG_LEVEL': os.getenv('LOG_LEVEL', 'INFO').upper(),
        # Bills above this size are refused on upload (10 MiB like the legacy uploader)
        'MAX_BILL_FILE_BYTES': int(os.getenv('MAX_BILL_FILE_BYTES', str(10 * 1024 * 1024))),
        # Lifetime of a password reset token once issued
        'PASSWORD_RESET_TTL_MINUTES': int(os.getenv('PASSWORD_RESET_TTL_MINUTES', '60')),
        'ALLOW_SELF_REGISTRATION': _flag('ALLOW_SELF_REGISTRATION', 'true'),
        'CELERY': {
            'broker_url': broker_url,
            'result_backend': os.getenv('CELERY_RESULT_BACKEND') or None,
            'task_ignore_result': True,
            # Without a worker, deliver notifications inline
            'task_always_eager': _flag('CELERY_TASK_ALWAYS_EAGER', 'true'),
        },
    }

__all__ = ['load_settings']
