import os
from dotenv import load_dotenv

load_dotenv()

DATABASE_URL = os.getenv("DATABASE_URL", "sqlite:///data.db")

TWITTER_BEARER_TOKEN = os.getenv("TWITTER_BEARER_TOKEN")
TWITTER_API_BASE_URL = os.getenv("TWITTER_API_BASE_URL", "https://api.twitter.com/1.1")

# Account whose timeline carries the incident reports
HRFE_ACCOUNT_HANDLE = os.getenv("HRFE_ACCOUNT_HANDLE", "HRFE_Incidents")

TIMELINE_PAGE_SIZE = int(os.getenv("TIMELINE_PAGE_SIZE", "200"))
TIMELINE_TIMEOUT = float(os.getenv("TIMELINE_TIMEOUT", "30"))

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")
