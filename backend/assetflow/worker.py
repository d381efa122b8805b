from __future__ import annotations
"""Celery wiring for the Flask app.

Tasks run inside an application context so they can use ``get_db()``. A worker
is started against ``backend/make_celery.py``:

    celery -A make_celery worker --loglevel INFO
"""
from celery import Celery, Task
from flask import Flask, has_app_context


def celery_init_app(app: Flask) -> Celery:
    class FlaskTask(Task):
        def __call__(self, *args, **kwargs):
            # Eager tasks already run inside the request's context
            if has_app_context():
                return self.run(*args, **kwargs)
            with app.app_context():
                return self.run(*args, **kwargs)

    celery_app = Celery(app.name, task_cls=FlaskTask)
    celery_app.config_from_object(app.config['CELERY'])
    celery_app.set_default()
    app.extensions['celery'] = celery_app
    return celery_app
