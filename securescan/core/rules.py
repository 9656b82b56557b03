"""
Detection rule tables shared by the content, URL and header analyzers.

Everything here is read-only: tuples, compiled patterns and mapping proxies built at
import time, so a single copy can serve any number of concurrent scans.
"""

import re
from types import MappingProxyType

# ============================================================================
# URGENCY / THREAT LANGUAGE
# ============================================================================

URGENCY_KEYWORDS = (
    "urgent", "immediately", "act now", "limited time", "expires soon",
    "account suspended", "account locked", "account disabled", "verify now",
    "verify immediately", "confirm now", "confirm your", "validate your",
    "update your", "click here", "click immediately", "respond immediately",
    "final notice", "last warning", "last chance", "do not ignore",
    "failure to respond", "24 hours", "48 hours", "within 24", "within 48",
    "your account will be", "will be terminated", "will be suspended",
    "will be deleted", "will be closed", "action required", "action needed",
    "security alert", "security warning", "unusual activity", "suspicious activity",
    "unauthorized access", "your password", "reset your password",
    "prize", "winner", "congratulations", "won a", "selected you",
    "free gift", "claim your", "bonus offer",
)

# ============================================================================
# CREDENTIAL HARVEST LANGUAGE
# ============================================================================

CREDENTIAL_KEYWORDS = (
    "enter your password", "enter your username", "enter your email",
    "provide your", "submit your", "confirm your password",
    "social security", "ssn", "credit card", "card number",
    "bank account", "routing number", "pin number", "date of birth",
    "mother's maiden", "security question", "passphrase",
)

# ============================================================================
# IMPERSONAL GREETINGS
# ============================================================================

GENERIC_GREETINGS = (
    "dear customer", "dear user", "dear account holder",
    "dear member", "dear valued customer", "hello user",
    "dear sir", "dear madam", "to whom it may concern",
)

# ============================================================================
# HOMOGLYPHS (look-alike character -> ASCII)
# ============================================================================

HOMOGLYPHS = MappingProxyType({
    # Cyrillic
    "\u0430": "a",
    "\u0435": "e",
    "\u043e": "o",
    "\u0440": "p",
    "\u0441": "c",
    "\u0445": "x",
    "\u0443": "y",
    "\u0456": "i",
    # Digit / symbol swaps
    "0": "o",
    "1": "l",
    "|": "l",
    # Greek
    "\u03b1": "a",
    "\u03bf": "o",
    "\u03bd": "v",
    # Latin m with acute / dot above
    "\u1e3f": "m",
    "\u1e41": "m",
})

# ============================================================================
# BRAND LOOKALIKE PATTERNS
# ============================================================================

LOOKALIKE_PATTERNS = (
    re.compile(r"pay[p][a4][l1][^a-z]", re.IGNORECASE),            # payp4l, paypa1
    re.compile(r"amaz[o0]n", re.IGNORECASE),                       # amaz0n
    re.compile(r"micr[o0]s[o0]ft", re.IGNORECASE),                 # micr0soft
    re.compile(r"g[o0]{2}gl[e3]", re.IGNORECASE),                  # g00gle
    re.compile(r"app[l1][e3]", re.IGNORECASE),                     # app1e
    re.compile(r"netfl[i1]x", re.IGNORECASE),                      # netfl1x
    re.compile(r"faceb[o0]{2}k", re.IGNORECASE),                   # faceb00k
    re.compile(r"pay[\-_]?pal\.(?!com)", re.IGNORECASE),           # paypal.net
    re.compile(r"amazon\.(?!com|co\.|de|fr|es|it|ca|au)", re.IGNORECASE),
)

# ============================================================================
# URL SHORTENERS
# ============================================================================

# Ordered: the content analyzer reports matches in this order.
SHORTENERS = (
    "bit.ly", "tinyurl.com", "ow.ly", "t.co", "goo.gl",
    "short.link", "rebrand.ly", "cutt.ly", "is.gd", "buff.ly",
    "tiny.cc", "lnkd.in", "db.tt", "qr.ae", "adf.ly",
)

# ============================================================================
# BRAND TOKENS
# ============================================================================

# Host tokens the URL analyzer treats as spoofing bait.
URL_BRANDS = (
    "paypal", "amazon", "google", "microsoft", "apple",
    "netflix", "bank", "secure", "login", "account", "verify",
    "ebay", "dropbox", "linkedin", "instagram", "facebook",
)

URL_PHISHING_KEYWORDS = ("login", "signin", "verify", "update", "confirm", "secure")

# Display names that should only come from the matching brand's address.
TRUSTED_DISPLAY_BRANDS = (
    "paypal", "amazon", "google", "microsoft", "apple",
    "netflix", "bank", "support", "security", "account",
    "noreply", "service", "help", "admin", "facebook",
    "instagram", "linkedin", "dropbox", "ebay",
)

PRIVATE_IP_PREFIXES = ("10.", "192.168.", "172.")

# ============================================================================
# SCORING
# ============================================================================

WEIGHTS = MappingProxyType({
    "suspicious_link": 30,
    "urgency_base": 20,
    "urgency_per_match": 3,
    "urgency_bonus_cap": 15,
    "credential_harvest": 35,
    "sender_mismatch": 25,
    "all_caps_subject": 15,
    "homoglyph": 40,
    "lookalike_domain": 40,
    "excessive_punctuation": 10,
    "generic_greeting": 15,
    "url_suspicious": 20,
    "url_malicious": 40,
    "spf_fail": 30,
    "no_dkim": 20,
    "return_path_mismatch": 25,
    "display_name_spoofing": 35,
    "private_ip": 20,
})

SAFE_BELOW = 30
MALICIOUS_FROM = 70
MAX_SCORE = 100
MAX_CONFIDENCE = 97
LOW_SCORE_CONFIDENCE_FLOOR = 30
LOW_SCORE_THRESHOLD = 20
CONFIDENCE_PER_INDICATOR = 5
