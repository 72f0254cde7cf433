# run.py
import logging
import sys

from storefront import close_store, create_app
from storefront.errors import StartupFailure


def main():
    try:
        app = create_app()
    except StartupFailure as e:
        logging.error("[BOOT] startup aborted: %s", e)
        sys.exit(1)

    host = app.config["HOST"]
    port = app.config["PORT"]
    app.logger.info("Server is running at http://%s:%s", host, port)
    try:
        app.run(host=host, port=port, debug=app.config["DEBUG_MODE"], use_reloader=False, threaded=True)
    finally:
        close_store(app)


if __name__ == "__main__":
    main()
