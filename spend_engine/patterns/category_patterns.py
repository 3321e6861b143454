"""
Merchant and UPI pattern definitions for spend categorisation.

Contains the hand-authored tables that sit on top of the tunable per-category
keyword configuration:
- High-confidence merchant rules (weighted keyword groups)
- UPI handle patterns (ordered, first match wins)
- UPI description templates (merchant extraction)
- UPI handle hints used when only a handle and an amount are known
"""

import re

# High-confidence merchant rules, added after the base keyword rules.
# Keys are category names; each entry becomes one weighted rule.
MERCHANT_RULES = [
    # Food delivery apps
    {
        "keywords": ["zomato", "swiggy", "dunzo", "ubereats"],
        "category": "FOOD",
        "weight": 2.0,
    },
    # Ride hailing
    {
        "keywords": ["uber", "ola", "rapido", "namma yatri"],
        "category": "TRANSPORT",
        "weight": 2.0,
    },
    # Book sellers
    {
        "keywords": ["amazon books", "flipkart books", "bookstore"],
        "category": "BOOKS",
        "weight": 2.0,
    },
    # Streaming and ticketing
    {
        "keywords": ["netflix", "spotify", "prime video", "hotstar", "bookmyshow"],
        "category": "ENTERTAINMENT",
        "weight": 2.0,
    },
    # Pharmacies and hospitals
    {
        "keywords": ["apollo", "medplus", "netmeds", "1mg", "hospital"],
        "category": "EMERGENCY",
        "weight": 2.0,
    },
    # Hostel and accommodation fees
    {
        "keywords": ["mess fee", "hostel rent", "accommodation", "pg rent"],
        "category": "HOSTEL",
        "weight": 2.0,
    },
]

# UPI handle short-circuit table. Order matters: the first match wins.
UPI_HANDLE_PATTERNS = [
    (re.compile(r"zomato.*@paytm", re.IGNORECASE), "FOOD"),
    (re.compile(r"swiggy.*@paytm", re.IGNORECASE), "FOOD"),
    (re.compile(r"uber.*@paytm", re.IGNORECASE), "TRANSPORT"),
    (re.compile(r"ola.*@paytm", re.IGNORECASE), "TRANSPORT"),
    (re.compile(r"netflix.*@paytm", re.IGNORECASE), "ENTERTAINMENT"),
    (re.compile(r"spotify.*@paytm", re.IGNORECASE), "ENTERTAINMENT"),
    (re.compile(r"amazon.*@paytm", re.IGNORECASE), "BOOKS"),
    (re.compile(r"flipkart.*@paytm", re.IGNORECASE), "BOOKS"),
    (re.compile(r".*mess.*@paytm", re.IGNORECASE), "HOSTEL"),
    (re.compile(r".*hospital.*@paytm", re.IGNORECASE), "EMERGENCY"),
]

# Merchant extraction templates for bank/UPI log descriptions, tried in order
UPI_DESCRIPTION_PATTERNS = [
    re.compile(r"to\s+([^-\s]+)", re.IGNORECASE),   # "UPI-ZOMATO-123 to MERCHANT"
    re.compile(r"([A-Z]+)\s*-", re.IGNORECASE),     # "SWIGGY-123-..."
    re.compile(r"UPI-([^-\s]+)", re.IGNORECASE),    # "UPI-MERCHANT-..."
]

# UPI ID format: handle@provider
UPI_ID_PATTERN = re.compile(r"^[a-zA-Z0-9.\-_]{2,256}@[a-zA-Z]{2,64}$")

# Substring hints used when estimating a category from a bare UPI ID.
# Checked in order; confidence is fixed per hint group.
UPI_HANDLE_HINTS = [
    {
        "category": "FOOD",
        "substrings": ["zomato", "swiggy", "food", "canteen", "restaurant", "cafe"],
        "confidence": 0.85,
    },
    {
        "category": "TRANSPORT",
        "substrings": ["uber", "ola", "cab", "taxi", "transport"],
        "confidence": 0.85,
    },
    {
        "category": "ENTERTAINMENT",
        "substrings": ["netflix", "spotify", "bookmyshow", "pvr", "entertainment"],
        "confidence": 0.80,
    },
    {
        "category": "BOOKS",
        "substrings": ["amazon", "flipkart", "book", "college", "edu"],
        "confidence": 0.70,
    },
    {
        "category": "EMERGENCY",
        "substrings": ["hospital", "medic", "pharma", "health"],
        "confidence": 0.75,
    },
]
