# ==============================================================================
# WSGI Entry Point - For Gunicorn / production servers
# ==============================================================================
# USAGE:
#   gunicorn wsgi:app --bind 0.0.0.0:$PORT
#
# PROJECT STRUCTURE:
#   repo_root/           <- Working directory (on sys.path automatically)
#   ├── wsgi.py          <- This file
#   ├── pyproject.toml
#   └── sweet_shop/      <- Python package
#       ├── __init__.py
#       ├── main.py
#       ├── services/
#       └── repositories/
#
# CLI commands run against this module too:
#   flask --app wsgi seed --replace
# ==============================================================================

import os

from sweet_shop.main import create_app

app = create_app()

# ==============================================================================
# ENTRY POINT
# ==============================================================================
# For local development:
#   python wsgi.py
# ==============================================================================

if __name__ == '__main__':
    DEBUG = os.environ.get('FLASK_DEBUG', '0') == '1'
    HOST = os.environ.get('FLASK_HOST', '0.0.0.0')
    PORT = int(os.environ.get('FLASK_PORT', 5000))
    app.run(host=HOST, port=PORT, debug=DEBUG)
