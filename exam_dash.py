import logging

from config.settings import settings
from dashboard.ui import run_dashboard

# ==========================================
# ENVIRONMENT
# ==========================================

logging.basicConfig(level=settings.LOG_LEVEL, format='%(levelname)s: %(message)s')
settings.validate()


if __name__ == "__main__":
    run_dashboard()
