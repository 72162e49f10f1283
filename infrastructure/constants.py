"""
Constants Module - Centralized configuration values
===================================================

PURPOSE: Single source of truth for the reservation site's URLs, locators and timeouts
PATTERN: Modular constants organized by category
SCOPE: Application-wide configuration values

Structural paths are positional XPaths into the club's Angular app. They are
the first thing to break when the vendor ships a layout change; update them
here and nowhere else.
"""

# Site
DASHBOARD_URL = "https://bayclubconnect.com/home/dashboard"
DASHBOARD_URL_GLOB = "**/home/dashboard**"
DASHBOARD_URL_MARKERS = ("/home/dashboard", "/dashboard")
LOGGED_IN_MARKER = "text=Select Activity"
BROWSERBASE_CONNECT_URL = "wss://connect.browserbase.com"

# Defaults
DEFAULT_TIMEZONE = "America/Los_Angeles"
DEFAULT_SESSION_IDLE_SECONDS = 600
DEFAULT_COMPANION_NAME = "Samuel Wang"
DEFAULT_CALENDAR_CREDENTIALS_PATH = "google-calendar-credentials.json"
CLUB_NAME = "Bay Club Gateway"
CLUB_LOCATION = "Bay Club Gateway, San Francisco, CA"

# Booking durations in minutes, keyed by sport
SPORT_DURATION_MINUTES = {
    "tennis": 90,
    "pickleball": 60,
}

# Login form cascades, tried in order
USERNAME_FIELD_SELECTORS = (
    'input[type="email"]',
    'input[type="text"]',
    'input[name*="username"]',
    'input[name*="email"]',
    'input[placeholder*="email" i]',
    'input[placeholder*="username" i]',
    'input[id*="username"]',
    'input[id*="email"]',
)
PASSWORD_FIELD_SELECTORS = ('input[type="password"]',)
SUBMIT_CONTROL_SELECTORS = (
    'button[type="submit"]',
    'input[type="submit"]',
    'button:has-text("Log In")',
    'button:has-text("Sign In")',
    'button:has-text("Login")',
    'button:has-text("Submit")',
)

# Navigation chain (structural only)
_DASHBOARD = "/html/body/app-root/div/app-dashboard/div/div/div[1]/div[1]"
_CLUB_MODAL = (
    "/html/body/modal-container/div[2]/div/app-club-context-select-modal/div[2]/div/"
    "app-schedule-visit-club/div"
)
_FILTER = "/html/body/app-root/div/ng-component/app-racquet-sports-filter"
_TIME_SLOT_SELECT = "/html/body/app-root/div/ng-component/app-racquet-sports-time-slot-select"
_CONFIRM_BOOKING = (
    "/html/body/app-root/div/ng-component/app-racquet-sports-confirm-booking/div[1]/div/div/div/div/"
    "div[2]/app-racquet-sports-player-select"
)

NAVIGATION_STEPS = (
    ("open club selector", f"xpath={_DASHBOARD}/app-club-context-select/div/span[4]", 2000),
    (
        "choose club",
        f"xpath={_CLUB_MODAL}/div[1]/div/div[2]/div/div[3]/div[1]/div/div[2]/app-radio-select/div/div[2]/div/div[2]/div/span",
        1000,
    ),
    ("save club", f"xpath={_CLUB_MODAL}/div[2]/div/div", 2000),
    ("open schedule menu", "xpath=/html/body/app-root/div/app-navbar/nav/div/div/button/span", 2000),
    (
        "choose court booking",
        "xpath=/html/body/app-root/div/app-schedule-visit/div/div/div[2]/div[1]/div[2]/div/div/img",
        5000,
    ),
)

SPORT_LABELS = {
    "tennis": "Tennis",
    "pickleball": "Pickleball",
}
SPORT_XPATHS = {
    "tennis": f"xpath={_FILTER}/div[1]/div[1]/div/div/app-court-booking-category-select/div/div[1]/div/div[2]",
    "pickleball": f"xpath={_FILTER}/div[1]/div[1]/div/div/app-court-booking-category-select/div/div[1]/div/div[4]",
}
DURATION_XPATHS = {
    "tennis": f"xpath={_FILTER}/div[1]/div[2]/div[2]/app-button-select/div/div[3]/span",
    "pickleball": f"xpath={_FILTER}/div[1]/div[2]/div[2]/app-button-select/div/div[2]/span",
}
FILTER_NEXT_XPATH = (
    f"xpath={_FILTER}/div[2]/app-racquet-sports-reservation-summary/div/div/div/div/button"
)

DAY_ABBREVIATIONS = {
    "monday": "Mo",
    "tuesday": "Tu",
    "wednesday": "We",
    "thursday": "Th",
    "friday": "Fr",
    "saturday": "Sa",
    "sunday": "Su",
}
DEFAULT_DAY_ABBREVIATION = "Mo"

HOUR_VIEW_SELECTORS = (
    f"xpath={_TIME_SLOT_SELECT}/div[1]/div/div[3]/div/div/app-court-time-slot-select[1]/div/div[2]/div/"
    "app-time-slot-view-type-select/app-button-select/div/div[2]/span",
    'xpath=//span[contains(text(), "HOUR VIEW")]',
    "xpath=//app-time-slot-view-type-select//div[2]//span",
)

# Slot enumeration
TIME_SLOT_ITEM_SELECTOR = "app-court-time-slot-item"
TIME_SLOT_CONTAINER_SELECTOR = "xpath=//app-court-time-slot-select"
GENERIC_BLOCK_SELECTOR = "div"
MAX_SLOT_LABEL_LENGTH = 15

SLOT_NEXT_XPATH = (
    f"xpath={_TIME_SLOT_SELECT}/div[2]/app-racquet-sports-reservation-summary/div/div/div/div[2]/button"
)

# Companion selection: likely list positions, then generic list
COMPANION_XPATHS = (
    f"xpath={_CONFIRM_BOOKING}/div/div[6]/app-racquet-sports-person/div/div[1]",
    f"xpath={_CONFIRM_BOOKING}/div/div[1]/app-racquet-sports-person/div/div[1]",
    f"xpath={_CONFIRM_BOOKING}/div/div[15]/app-racquet-sports-person/div/div[1]",
)
COMPANION_ITEM_SELECTOR = "app-racquet-sports-person"

CONFIRM_BUTTON_KEYWORDS = ("confirm", "book", "submit", "complete")


class BrowserTimeouts:
    """Timeout values in milliseconds for remote-browser waits."""
    NAVIGATION = 30000          # Dashboard goto
    LOGIN_REDIRECT = 20000      # Wait for dashboard URL after submit
    FIELD_VISIBLE = 10000       # Login form fields becoming visible
    CLICK = 5000                # Ordinary element clicks
    QUICK_CLICK = 2000          # Clicks inside tight scans
    LOGGED_IN_CHECK = 3000      # Authenticated marker probe
    STRUCTURAL_STEP = 10000     # Navigation chain steps
    SPORT_FALLBACK = 15000      # Structural sport/duration lookups
    HOUR_VIEW = 5000            # Each hour-view variant
    SLOT_LATE_RENDER = 10000    # Second/third slot enumeration strategies
    COMPANION_PATH = 2000       # Each companion list position


class SettleDelays:
    """Pauses in milliseconds that let the Angular app finish re-rendering."""
    AFTER_DASHBOARD = 3000
    AFTER_FIELD_FILL = 500
    AFTER_LOGIN = 3000
    AFTER_SPORT = 3000
    AFTER_DURATION = 2000
    AFTER_FILTER_NEXT = 3000
    AFTER_DAY = 2000
    AFTER_HOUR_VIEW = 3000
    BEFORE_SLOT_SCAN = 3000
    AFTER_SCROLL = 500
    AFTER_SLOT_CLICK = 2000
    AFTER_SLOT_NEXT = 3000
    BEFORE_COMPANION = 3000
    AFTER_COMPANION = 2000
    AFTER_CONFIRM = 3000
