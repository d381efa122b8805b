from assetflow import create_app

flask_app = create_app()
celery_app = flask_app.extensions['celery']

import assetflow.tasks  # noqa: E402,F401  registers deliver_notification
