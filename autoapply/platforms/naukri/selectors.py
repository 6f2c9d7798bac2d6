"""Naukri DOM selector constants.

Each lookup constant is a tuple so callers iterate until a match is found.
"""

# --- URLs ---
HOME_URL = "https://www.naukri.com/"
AUTHENTICATED_URL = "https://www.naukri.com/mnjuser/homepage"
AUTHENTICATED_URL_MARKER = "mnjuser/homepage"

# --- Login ---
LOGIN_LAYER_BUTTON: tuple[str, ...] = (
    "a[title='Jobseeker Login']",
    "#login_Layer",
)
LOGIN_USERNAME_INPUT: tuple[str, ...] = (
    "input[type='text']",
    "input[placeholder*='Email']",
)
LOGIN_PASSWORD_INPUT: tuple[str, ...] = ("input[type='password']",)
LOGIN_SUBMIT_BUTTON: tuple[str, ...] = ("button[type='submit']",)

# --- Search results ---
CARD_SELECTORS: tuple[str, ...] = (
    ".cust-job-tuple",
    "div.srp-jobtuple-wrapper",
)
TITLE_LINK_SELECTORS: tuple[str, ...] = ("h2 > a.title", "a.title")
COMPANY_SELECTORS: tuple[str, ...] = ("a.comp-name",)
RATING_SELECTORS: tuple[str, ...] = ("a.rating .main-2",)
REVIEWS_SELECTORS: tuple[str, ...] = ("a.review",)
EXPERIENCE_SELECTORS: tuple[str, ...] = (".exp span[title]", ".exp-wrap span[title]")
SALARY_SELECTORS: tuple[str, ...] = (".sal span[title]", ".sal-wrap span[title]")
LOCATION_SELECTORS: tuple[str, ...] = (".loc span[title]", ".loc-wrap span[title]")
DESCRIPTION_SELECTORS: tuple[str, ...] = (".job-desc",)
SKILL_ITEM_SELECTOR = "ul.tags-gt li"
POSTED_SELECTORS: tuple[str, ...] = (".job-post-day",)

NEXT_PAGE_SELECTOR = "a.styles_btn-secondary__2AsIP"
NEXT_PAGE_TEXT = "Next"

# --- Apply flow ---
APPLY_BUTTON_SELECTORS: tuple[str, ...] = (".apply-button", "#apply-button")
CHAT_DRAWER_SELECTORS: tuple[str, ...] = (".chatbot_DrawerContentWrapper",)
CHAT_ITEM_SELECTOR = ".chatbot_ListItem"
CHAT_QUESTION_SELECTOR = ".botMsg span"
RADIO_CONTAINER_SELECTOR = ".ssrc__radio-btn-container"
RADIO_LABEL_SELECTOR = "label"
CHECKBOX_SELECTOR = 'input[type="checkbox"]'
TEXT_INPUT_SELECTOR = 'div[contenteditable="true"]'
SAVE_BUTTON_SELECTOR = ".sendMsg"
