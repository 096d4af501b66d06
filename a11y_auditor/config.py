import os

from dotenv import load_dotenv

load_dotenv()


def _env_bool(name: str, default: bool = False) -> bool:
    value = os.getenv(name)
    if value is None:
        return default
    return value.strip().lower() in ("1", "true", "yes", "on")


# External accessibility API
A11Y_API_URL = os.getenv("A11Y_API_URL", "https://api.accesstive.org/nsa-accesstive")
A11Y_API_KEY = os.getenv("A11Y_API_KEY", "")
A11Y_AUTH_TOKEN = os.getenv("A11Y_AUTH_TOKEN", "")
A11Y_API_ORIGIN = os.getenv("A11Y_API_ORIGIN", "")
REPORT_LANGUAGE = os.getenv("REPORT_LANGUAGE", "en")
ENABLE_SCREENSHOTS = _env_bool("ENABLE_SCREENSHOTS")
ENABLE_HIGHLIGHT = _env_bool("ENABLE_HIGHLIGHT")
AUDIT_TIMEOUT = float(os.getenv("AUDIT_TIMEOUT", "60"))
AUTH_TEST_TIMEOUT = float(os.getenv("AUTH_TEST_TIMEOUT", "30"))
AUDIT_DELAY = float(os.getenv("AUDIT_DELAY", "1.0"))
AUTH_TEST_URL = "https://example.com"
RULE_HELP_BASE_URL = "https://accesstive.com/rules"

# Crawl settings
MAX_PAGES_TO_CRAWL = int(os.getenv("MAX_PAGES_TO_CRAWL", "100"))
MAX_PAGES_LIMIT = 500
CRAWL_DELAY = float(os.getenv("CRAWL_DELAY", "1.0"))
REQUEST_TIMEOUT = float(os.getenv("REQUEST_TIMEOUT", "30"))
MAX_REDIRECTS = 5
MAX_CHILD_SITEMAPS = 5

# Hosts that the crawled sites redirect to and share content with
LEGACY_REDIRECT_DOMAINS = ("t3planet.de", "t3planet.com")

# Reports and history
REPORT_VERSION = "1.0.0"
TOP_ISSUES_LIMIT = 10
MAX_HISTORY_ENTRIES = int(os.getenv("MAX_HISTORY_ENTRIES", "100"))

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")
LOG_FILE = os.getenv("LOG_FILE") or None

USER_AGENT = (
    "Mozilla/5.0 (compatible; A11yAuditBot/1.0; +https://github.com/a11y-auditor)"
)
API_USER_AGENT = "A11yAuditor/1.0.0"
