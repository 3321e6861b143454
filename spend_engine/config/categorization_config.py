"""
Categorisation configuration for the spend engine.
Contains the per-category keyword base rules, display metadata,
rule weights and confidence thresholds.
"""

# Category configuration
# Keywords here form the tunable base rule set (one rule per category, weight 1.0).
# Key order is the category declaration order used for tie-breaks.
CATEGORY_CONFIG = {
    "FOOD": {
        "name": "Food",
        "icon": "🍕",
        "color": "#F59E0B",
        "keywords": [
            "zomato", "swiggy", "mcdonald", "kfc", "pizza", "domino", "cafe",
            "starbucks", "subway", "burger", "canteen", "food", "restaurant",
            "mess", "lunch", "dinner", "breakfast",
        ],
    },
    "TRANSPORT": {
        "name": "Transport",
        "icon": "🚕",
        "color": "#0D94FB",
        "keywords": [
            "uber", "ola", "auto", "bus", "metro", "train", "cab", "taxi",
            "rickshaw", "bike", "railway", "transport", "travel", "commute",
        ],
    },
    "HOSTEL": {
        "name": "Hostel",
        "icon": "🏠",
        "color": "#7C3AED",
        "keywords": [
            "hostel", "mess", "electricity", "wifi", "laundry", "room", "rent",
            "maintenance", "water", "cleaning",
        ],
    },
    "BOOKS": {
        "name": "Books",
        "icon": "📚",
        "color": "#10B981",
        "keywords": [
            "amazon", "flipkart", "bookstore", "xerox", "library", "stationery",
            "course", "book", "study", "material", "notes", "printing",
        ],
    },
    "ENTERTAINMENT": {
        "name": "Entertainment",
        "icon": "🎬",
        "color": "#EC4899",
        "keywords": [
            "pvr", "bookmyshow", "netflix", "spotify", "gaming", "mall",
            "bowling", "arcade", "concert", "event", "movie", "cinema", "party",
        ],
    },
    "EMERGENCY": {
        "name": "Emergency",
        "icon": "🚨",
        "color": "#EF4444",
        "keywords": [
            "medical", "doctor", "hospital", "pharmacy", "emergency", "urgent",
            "repair", "health", "medicine", "checkup",
        ],
    },
}

# Scoring Configuration
CATEGORIZATION_CONFIG = {
    # Weight applied to each base keyword rule from CATEGORY_CONFIG
    "base_rule_weight": 1.0,

    # Category returned when nothing scores (first declared category)
    "default_category": "FOOD",

    # Confidence bounds for engine output
    "confidence": {
        "floor": 0.3,
        "ceiling": 0.95,
        "no_signal": 0.3,
        "upi_match": 0.95,
    },

    # Boost tiers, checked in order against the best absolute score
    "confidence_tiers": [
        {"min_score": 1.5, "multiplier": 1.2, "cap": 0.95},
        {"min_score": 1.0, "multiplier": 1.1, "cap": 0.85},
    ],
    # Clamp applied when no tier boosts the ratio
    "unboosted_cap": 0.8,

    # Reason text
    "reason_keyword_limit": 3,
    "score_reason_threshold": 0.5,

    # Bulk re-categorisation: minimum confidence gain that justifies a rewrite
    "recategorization_min_improvement": 0.1,

    # Fixed confidence/reason for human-assigned categories
    "manual_confidence": 1.0,
}

# Amount heuristics for bare UPI IDs (checked in order, amounts in INR)
AMOUNT_HEURISTICS = [
    {"min_amount": 1000, "category": "HOSTEL", "confidence": 0.40},
    {"max_amount": 50, "category": "FOOD", "confidence": 0.50},
    {"max_amount": 200, "category": "TRANSPORT", "confidence": 0.45},
]
AMOUNT_FALLBACK = {"category": "FOOD", "confidence": 0.30}
